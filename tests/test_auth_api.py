# tests/test_auth_api.py
import threading

import pytest
from fastapi import Depends

from eduable import auth
from eduable.auth import require_role
from eduable.errors import DuplicateUsername
from eduable.schemas import NewUser, Role, User, UserCreate
from eduable.storage import MemStorage


def register_payload(username="alice", email="alice@x.com", role="student", password="secret123"):
    return {
        "username": username,
        "email": email,
        "password": password,
        "fullName": "Alice Example",
        "role": role,
    }


def test_register_creates_user_and_session(client):
    resp = client.post("/api/register", json=register_payload())
    assert resp.status_code == 201
    body = resp.json()
    assert body["username"] == "alice"
    assert body["fullName"] == "Alice Example"
    assert body["role"] == "student"
    assert body["accessibilitySettings"]["theme"] == "light"
    assert body["accessibilitySettings"]["enableTTS"] is False
    # хэш пароля наружу не отдаётся
    assert "password" not in body

    me = client.get("/api/user")
    assert me.status_code == 200
    assert me.json()["id"] == body["id"]


def test_register_then_login(make_client):
    make_client().post("/api/register", json=register_payload())

    client = make_client()
    resp = client.post("/api/login", json={"username": "alice", "password": "secret123"})
    assert resp.status_code == 200
    assert resp.json()["username"] == "alice"
    assert client.get("/api/user").status_code == 200


@pytest.mark.parametrize("payload, message", [
    (register_payload(username="ALICE", email="other@x.com"), "Username already exists"),
    (register_payload(username="bob", email="Alice@X.com"), "Email already exists"),
])
def test_register_rejects_duplicates_case_insensitively(make_client, payload, message):
    make_client().post("/api/register", json=register_payload())

    resp = make_client().post("/api/register", json=payload)
    assert resp.status_code == 400
    assert resp.text == message


def test_register_validates_input(client):
    resp = client.post("/api/register", json=register_payload(email="not-an-email"))
    assert resp.status_code == 400

    resp = client.post("/api/register", json=register_payload(role="superuser"))
    assert resp.status_code == 400


def test_login_wrong_password(make_client):
    make_client().post("/api/register", json=register_payload())

    resp = make_client().post("/api/login", json={"username": "alice", "password": "wrong-pass"})
    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid username or password"}


def test_login_unknown_user(client):
    resp = client.post("/api/login", json={"username": "nobody", "password": "secret123"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid username or password"


def test_login_with_malformed_stored_password(client, storage):
    storage.create_user(NewUser(
        username="legacy", email="legacy@x.com", password="plaintext-no-salt", full_name="Legacy",
    ))
    resp = client.post("/api/login", json={"username": "legacy", "password": "plaintext-no-salt"})
    assert resp.status_code == 401


def test_logout_is_idempotent(client):
    client.post("/api/register", json=register_payload())

    assert client.post("/api/logout").status_code == 200
    assert client.get("/api/user").status_code == 401
    assert client.post("/api/logout").status_code == 200


def test_current_user_requires_session(client):
    assert client.get("/api/user").status_code == 401


def test_session_expires_from_login_time(client, app):
    client.post("/api/register", json=register_payload())
    assert client.get("/api/user").status_code == 200

    app.state.settings.session_ttl = -1
    assert client.get("/api/user").status_code == 401


def test_accessibility_settings_merge(client):
    client.post("/api/register", json=register_payload())

    resp = client.patch("/api/user/accessibility", json={"settings": {"theme": "dark", "enableTTS": True}})
    assert resp.status_code == 200
    settings = resp.json()["accessibilitySettings"]
    assert settings["theme"] == "dark"
    assert settings["enableTTS"] is True
    assert settings["fontSize"] == "normal"

    resp = client.patch("/api/user/accessibility", json={"settings": {"fontSize": "larger"}})
    settings = resp.json()["accessibilitySettings"]
    assert settings["theme"] == "dark"
    assert settings["fontSize"] == "larger"
    assert client.get("/api/user").json()["accessibilitySettings"]["fontSize"] == "larger"


def test_accessibility_rejects_unknown_keys(client):
    client.post("/api/register", json=register_payload())

    resp = client.patch("/api/user/accessibility", json={"settings": {"blink": True}})
    assert resp.status_code == 400
    assert client.get("/api/user").json()["accessibilitySettings"]["theme"] == "light"


def test_accessibility_requires_session(client):
    resp = client.patch("/api/user/accessibility", json={"settings": {"theme": "dark"}})
    assert resp.status_code == 401


def test_require_role_is_strict(app, signup):
    @app.get("/api/test/teacher-only")
    async def teacher_only(user: User = Depends(require_role(Role.TEACHER))):
        return {"id": user.id}

    teacher, _ = signup(role="teacher")
    admin, _ = signup(role="admin")
    student, _ = signup(role="student")

    assert teacher.get("/api/test/teacher-only").status_code == 200
    assert admin.get("/api/test/teacher-only").status_code == 403
    assert student.get("/api/test/teacher-only").status_code == 403


def test_require_role_without_session(app, client):
    @app.get("/api/test/admin-only")
    async def admin_only(user: User = Depends(require_role(Role.ADMIN))):
        return {"id": user.id}

    assert client.get("/api/test/admin-only").status_code == 401


def test_concurrent_registrations_create_one_account():
    storage = MemStorage()
    barrier = threading.Barrier(4)
    errors = []

    def worker():
        barrier.wait()
        try:
            auth.register(storage, UserCreate(
                username="alice", email="alice@x.com", password="secret123",
                full_name="Alice Example", role=Role.STUDENT,
            ))
        except DuplicateUsername as e:
            errors.append(e)

    threads = [threading.Thread(target=worker) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert storage.get_user_count() == 1
    assert storage.get_user_by_username("alice").id == 1
    assert len(errors) == 3


def test_register_with_precomputed_hash(storage):
    password_hash = auth.hash_password("secret123")
    user = auth.register(storage, UserCreate(
        username="alice", email="alice@x.com", password="secret123", full_name="Alice Example",
    ), password_hash)
    assert user.password == password_hash
    assert auth.authenticate(storage, "alice", "secret123").id == user.id
