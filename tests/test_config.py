# tests/test_config.py
import pytest

from eduable.config import DEFAULT_SESSION_TTL, load_settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("EDUABLE_SESSION_SECRET", "EDUABLE_SESSION_TTL", "EDUABLE_STORAGE",
                 "EDUABLE_SEED_SAMPLE_DATA", "EDUABLE_LOG_LEVEL", "EDUABLE_HTTPS_ONLY"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults_generate_random_secret(clean_env):
    first = load_settings()
    second = load_settings()
    assert first.session_secret and first.session_secret != second.session_secret
    assert first.session_ttl == DEFAULT_SESSION_TTL
    assert first.storage_backend == "memory"
    assert first.seed_sample_data is True


def test_settings_from_environment(clean_env):
    clean_env.setenv("EDUABLE_SESSION_SECRET", "s3cret")
    clean_env.setenv("EDUABLE_SESSION_TTL", "60")
    clean_env.setenv("EDUABLE_STORAGE", "SQL")
    clean_env.setenv("EDUABLE_SEED_SAMPLE_DATA", "no")
    clean_env.setenv("EDUABLE_LOG_LEVEL", "debug")

    settings = load_settings()
    assert settings.session_secret == "s3cret"
    assert settings.session_ttl == 60
    assert settings.storage_backend == "sql"
    assert settings.seed_sample_data is False
    assert settings.log_level == "DEBUG"


def test_unknown_storage_backend(clean_env):
    clean_env.setenv("EDUABLE_STORAGE", "redis")
    with pytest.raises(ValueError):
        load_settings()
