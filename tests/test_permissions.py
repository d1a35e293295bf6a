# tests/test_permissions.py
from datetime import datetime, timezone

import pytest

from eduable.permissions import Action, can, capabilities
from eduable.schemas import Role, User


def user_with(role):
    return User(id=1, username="u", email="u@x.com", full_name="U", role=role,
                created_at=datetime.now(timezone.utc))


def test_anonymous_can_nothing():
    assert not can(None, Action.ENROLLMENT_CREATE)


@pytest.mark.parametrize("role", list(Role))
def test_every_role_can_learn(role):
    for action in (Action.ENROLLMENT_CREATE, Action.REVIEW_CREATE, Action.SETTINGS_UPDATE, Action.DASHBOARD_STUDENT):
        assert can(user_with(role), action)


def test_course_content_is_teacher_only():
    for action in (Action.COURSE_CREATE, Action.COURSE_UPDATE_OWN, Action.MATERIAL_CREATE_OWN):
        assert can(user_with(Role.TEACHER), action)
        assert not can(user_with(Role.ADMIN), action)
        assert not can(user_with(Role.STUDENT), action)


def test_admin_overrides():
    admin = user_with(Role.ADMIN)
    assert can(admin, Action.COURSE_DELETE_ANY)
    assert can(admin, Action.CERTIFICATE_VIEW_ANY)
    assert can(admin, Action.DASHBOARD_TEACHER)
    assert not can(user_with(Role.TEACHER), Action.COURSE_DELETE_ANY)


def test_admin_only_actions():
    for action in (Action.USER_LIST, Action.USER_UPDATE_ROLE, Action.ANALYTICS_VIEW, Action.DASHBOARD_ADMIN):
        assert action in capabilities(Role.ADMIN)
        assert action not in capabilities(Role.TEACHER)
        assert action not in capabilities(Role.STUDENT)


def test_capabilities_accepts_plain_strings():
    assert capabilities("teacher") == capabilities(Role.TEACHER)
    assert can(user_with(Role.TEACHER), "course:create")
