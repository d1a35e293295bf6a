# tests/conftest.py
import itertools

import pytest
from fastapi.testclient import TestClient

from eduable import auth
from eduable.config import Settings
from eduable.database import make_session_factory
from eduable.main import create_app
from eduable.sql_storage import SqlStorage
from eduable.storage import MemStorage


@pytest.fixture(autouse=True)
def fast_scrypt(monkeypatch):
    # Полная стоимость scrypt в тестах не нужна
    monkeypatch.setattr(auth, "SCRYPT_N", 2 ** 10)


@pytest.fixture
def settings():
    return Settings(session_secret="test-secret", seed_sample_data=False, log_level="WARNING")


@pytest.fixture
def storage():
    return MemStorage()


@pytest.fixture(params=["memory", "sql"])
def any_storage(request):
    """Один и тот же контракт проверяем на обоих хранилищах."""
    if request.param == "memory":
        return MemStorage()
    return SqlStorage(make_session_factory("sqlite://"))


@pytest.fixture
def app(settings, storage):
    return create_app(settings=settings, storage=storage)


@pytest.fixture
def make_client(app):
    clients = []

    def factory():
        client = TestClient(app)
        clients.append(client)
        return client

    yield factory
    for client in clients:
        client.close()


@pytest.fixture
def client(make_client):
    return make_client()


@pytest.fixture
def signup(make_client):
    """Регистрирует пользователя в отдельном клиенте (со своей cookie) и возвращает (client, user)."""
    counter = itertools.count(1)

    def factory(role="student", username=None, password="secret123", full_name=None):
        n = next(counter)
        username = username or f"{role}{n}"
        client = make_client()
        resp = client.post("/api/register", json={
            "username": username,
            "email": f"{username}@example.com",
            "password": password,
            "fullName": full_name or username.title(),
            "role": role,
        })
        assert resp.status_code == 201, resp.text
        return client, resp.json()

    return factory


COURSE = {
    "title": "Web Accessibility Fundamentals",
    "description": "Make websites usable by everyone.",
    "category": "Web Development",
    "difficulty": "beginner",
    "price": 9900,
}


@pytest.fixture
def course_payload():
    return dict(COURSE)
