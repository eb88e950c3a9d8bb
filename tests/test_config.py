import pytest
from pydantic import ValidationError

from api.config import Settings


def _settings(**overrides) -> Settings:
    return Settings(_env_file=None, **overrides)


def test_defaults(monkeypatch):
    for name in ("UPDATE_SCHEDULE", "PORT", "MAX_RETRIES", "RATE_LIMIT_WINDOW_MINUTES", "CSV_ENCODING"):
        monkeypatch.delenv(name, raising=False)

    settings = _settings()

    assert settings.update_schedule == "0 3 * * *"
    assert settings.port == 3000
    assert settings.max_retries == 3
    assert settings.rate_limit_window_seconds == 15 * 60
    assert settings.csv_encoding == "utf-8-sig"


def test_environment_variables_override_defaults(monkeypatch):
    monkeypatch.setenv("PORT", "8080")
    monkeypatch.setenv("SCHEDULER_ENABLED", "false")
    monkeypatch.setenv("UPDATE_SCHEDULE", "*/30 * * * *")

    settings = _settings()

    assert settings.port == 8080
    assert settings.scheduler_enabled is False
    assert settings.update_schedule == "*/30 * * * *"


@pytest.mark.parametrize("schedule", ["cada día", "0 3 * *", "61 * * * *"])
def test_invalid_schedule_is_rejected(schedule):
    with pytest.raises(ValidationError):
        _settings(update_schedule=schedule)


@pytest.mark.parametrize("overrides", [
    {"max_retries": 0},
    {"port": 0},
    {"port": 70000},
    {"navigation_timeout_ms": 0},
    {"log_level": "VERBOSE"},
])
def test_invalid_values_are_rejected(overrides):
    with pytest.raises(ValidationError):
        _settings(**overrides)


def test_log_level_is_normalized():
    assert _settings(log_level="debug").log_level == "DEBUG"


def test_cors_origins_are_split():
    settings = _settings(cors_origins="https://a.do, https://b.do,")

    assert settings.cors_origin_list == ["https://a.do", "https://b.do"]


def test_only_local_proxy_is_trusted_by_default(monkeypatch):
    monkeypatch.delenv("FORWARDED_ALLOW_IPS", raising=False)

    assert _settings().forwarded_allow_ips == "127.0.0.1"


def test_unknown_keys_in_environment_are_ignored(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")

    settings = _settings()

    assert "environment" not in Settings.model_fields
    assert not hasattr(settings, "environment")
