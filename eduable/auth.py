# eduable/auth.py
"""
Учётные данные и сессии.

Пароль хранится как "<hex-хэш>.<hex-соль>", хэш считается scrypt (64 байта).
В cookie-сессии лежат только user_id и время входа: срок жизни сессии
отсчитывается от входа и не продлевается запросами.
"""
import binascii
import hashlib
import hmac
import logging
import os
import time
from typing import Optional

from fastapi import Depends, Request

from .accessibility import default_settings
from .errors import DuplicateEmail, DuplicateUsername, Forbidden, InvalidCredentials, Unauthorized
from .schemas import NewUser, Role, User, UserCreate
from .storage import Storage

logger = logging.getLogger(__name__)

SALT_SEPARATOR = "."
SCRYPT_N = 16384
SCRYPT_R = 8
SCRYPT_P = 1
KEY_LENGTH = 64


def _scrypt(password: str, salt: str) -> bytes:
    return hashlib.scrypt(
        password.encode("utf-8"),
        salt=salt.encode("utf-8"),
        n=SCRYPT_N,
        r=SCRYPT_R,
        p=SCRYPT_P,
        dklen=KEY_LENGTH,
    )


def hash_password(password: str, salt: Optional[str] = None) -> str:
    if salt is None:
        salt = os.urandom(16).hex()
    return f"{_scrypt(password, salt).hex()}{SALT_SEPARATOR}{salt}"


def verify_password(supplied: str, stored: str) -> bool:
    """Проверка пароля. Битое сохранённое значение даёт False, не исключение."""
    if not stored or SALT_SEPARATOR not in stored:
        logger.warning("Stored password has no salt separator")
        return False

    hashed, salt = stored.split(SALT_SEPARATOR, 1)
    if not hashed or not salt:
        logger.warning("Stored password has an empty hash or salt")
        return False

    try:
        expected = binascii.unhexlify(hashed)
    except (binascii.Error, ValueError):
        logger.warning("Stored password hash is not valid hex")
        return False

    return hmac.compare_digest(expected, _scrypt(supplied, salt))


# --- Регистрация и вход ---

def register(storage: Storage, data: UserCreate, password_hash: Optional[str] = None) -> User:
    """
    Создаёт учётную запись. Хэш можно посчитать заранее (в пуле потоков),
    тогда проверка уникальности и вставка идут подряд, без ожидания между ними.
    Хранилище повторяет проверку при вставке.
    """
    if storage.get_user_by_username(data.username):
        raise DuplicateUsername()
    if storage.get_user_by_email(data.email):
        raise DuplicateEmail()

    user = storage.create_user(NewUser(
        username=data.username,
        email=data.email,
        password=password_hash or hash_password(data.password),
        full_name=data.full_name,
        role=data.role,
        accessibility_settings=default_settings(),
    ))
    logger.info("Registered user %s (id=%s, role=%s)", user.username, user.id, user.role.value)
    return user


def authenticate(storage: Storage, username: str, password: str) -> User:
    user = storage.get_user_by_username(username)
    if user is None or not verify_password(password, user.password):
        logger.info("Login failed for %s", username)
        raise InvalidCredentials()
    logger.info("Login successful for user id %s", user.id)
    return user


# --- Сессия ---

def login_session(request: Request, user: User) -> None:
    request.session.clear()
    request.session["user_id"] = user.id
    request.session["issued_at"] = time.time()


def logout_session(request: Request) -> None:
    # Без сессии тоже не ошибка
    request.session.clear()


def get_storage(request: Request) -> Storage:
    return request.app.state.storage


def current_user(request: Request) -> Optional[User]:
    """Пользователь текущей сессии или None. Никогда не бросает исключений."""
    user_id = request.session.get("user_id")
    if not user_id:
        return None

    issued_at = request.session.get("issued_at", 0)
    ttl = request.app.state.settings.session_ttl
    if time.time() - issued_at > ttl:
        logger.info("Session for user id %s expired", user_id)
        request.session.clear()
        return None

    user = get_storage(request).get_user(user_id)
    if user is None:
        # Пользователя удалили, а cookie осталась
        request.session.clear()
    return user


# --- Зависимости FastAPI ---

def require_authenticated(request: Request) -> User:
    user = current_user(request)
    if user is None:
        raise Unauthorized()
    return user


def require_role(role: Role):
    """Строгая проверка роли: admin НЕ проходит в require_role(Role.TEACHER)."""
    role = Role(role)

    def dependency(user: User = Depends(require_authenticated)) -> User:
        if user.role != role:
            raise Forbidden()
        return user

    return dependency
