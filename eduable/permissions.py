# eduable/permissions.py
"""
Единая таблица прав: роль → набор разрешённых действий.

И сервер, и клиентский route guard (через GET /api/user/capabilities)
смотрят только сюда, никаких `role == "admin"` по месту.
"""
from enum import Enum
from typing import Dict, FrozenSet, Optional

from fastapi import Depends

from .auth import require_authenticated
from .errors import Forbidden
from .schemas import Role, User


class Action(str, Enum):
    ENROLLMENT_CREATE = "enrollment:create"
    REVIEW_CREATE = "review:create"
    SETTINGS_UPDATE = "settings:update"

    COURSE_CREATE = "course:create"
    COURSE_UPDATE_OWN = "course:update_own"
    COURSE_DELETE_OWN = "course:delete_own"
    COURSE_DELETE_ANY = "course:delete_any"
    COURSE_LIST_OWN = "course:list_own"
    MATERIAL_CREATE_OWN = "material:create_own"
    ENROLLMENT_VIEW_OWN_COURSE = "enrollment:view_own_course"

    CERTIFICATE_VIEW_ANY = "certificate:view_any"

    USER_LIST = "user:list"
    USER_UPDATE_ROLE = "user:update_role"
    ANALYTICS_VIEW = "analytics:view"

    # Разделы клиентского приложения
    DASHBOARD_STUDENT = "dashboard:student"
    DASHBOARD_TEACHER = "dashboard:teacher"
    DASHBOARD_ADMIN = "dashboard:admin"


_EVERYONE = frozenset({
    Action.ENROLLMENT_CREATE,
    Action.REVIEW_CREATE,
    Action.SETTINGS_UPDATE,
    Action.DASHBOARD_STUDENT,
})

# Контент курса (создание, правка, материалы) только у преподавателя-владельца.
# Админ удаляет любой курс и видит любые сертификаты, но курсы не редактирует.
CAPABILITIES: Dict[Role, FrozenSet[Action]] = {
    Role.STUDENT: _EVERYONE,
    Role.TEACHER: _EVERYONE | {
        Action.COURSE_CREATE,
        Action.COURSE_UPDATE_OWN,
        Action.COURSE_DELETE_OWN,
        Action.COURSE_LIST_OWN,
        Action.MATERIAL_CREATE_OWN,
        Action.ENROLLMENT_VIEW_OWN_COURSE,
        Action.CERTIFICATE_VIEW_ANY,
        Action.DASHBOARD_TEACHER,
    },
    Role.ADMIN: _EVERYONE | {
        Action.COURSE_DELETE_ANY,
        Action.CERTIFICATE_VIEW_ANY,
        Action.USER_LIST,
        Action.USER_UPDATE_ROLE,
        Action.ANALYTICS_VIEW,
        Action.DASHBOARD_TEACHER,
        Action.DASHBOARD_ADMIN,
    },
}


def capabilities(role: Role) -> FrozenSet[Action]:
    return CAPABILITIES.get(Role(role), frozenset())


def can(user: Optional[User], action: Action) -> bool:
    if user is None:
        return False
    return Action(action) in capabilities(user.role)


def require_capability(action: Action):
    action = Action(action)

    def dependency(user: User = Depends(require_authenticated)) -> User:
        if not can(user, action):
            raise Forbidden()
        return user

    return dependency
