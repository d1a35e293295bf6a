# eduable/config.py
import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Сессия живёт сутки с момента входа
DEFAULT_SESSION_TTL = 24 * 60 * 60
DEFAULT_DATABASE_URL = "sqlite:///./eduable.sqlite"


def _env_flag(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    session_secret: str
    session_ttl: int = DEFAULT_SESSION_TTL
    storage_backend: str = "memory"  # "memory" или "sql"
    database_url: str = DEFAULT_DATABASE_URL
    seed_sample_data: bool = True
    log_level: str = "INFO"
    https_only: bool = False


def load_settings() -> Settings:
    """Собирает настройки из переменных окружения EDUABLE_*."""
    secret = os.getenv("EDUABLE_SESSION_SECRET")
    if not secret:
        # Без секрета в окружении генерируем случайный: сессии не переживут рестарт
        logger.warning("EDUABLE_SESSION_SECRET is not set, using a random per-process secret")
        secret = os.urandom(24).hex()

    backend = os.getenv("EDUABLE_STORAGE", "memory").strip().lower()
    if backend not in ("memory", "sql"):
        raise ValueError(f"Unknown EDUABLE_STORAGE backend: {backend}")

    return Settings(
        session_secret=secret,
        session_ttl=int(os.getenv("EDUABLE_SESSION_TTL", DEFAULT_SESSION_TTL)),
        storage_backend=backend,
        database_url=os.getenv("EDUABLE_DATABASE_URL", DEFAULT_DATABASE_URL),
        seed_sample_data=_env_flag("EDUABLE_SEED_SAMPLE_DATA", True),
        log_level=os.getenv("EDUABLE_LOG_LEVEL", "INFO").upper(),
        https_only=_env_flag("EDUABLE_HTTPS_ONLY", False),
    )
