"""Tests for configuration loading."""

import pytest

from routinely.core.config import Constants, Settings


def test_settings_read_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test settings pick up environment variables case-insensitively."""
    monkeypatch.setenv("SQLITE_DB_PATH", "/tmp/routinely-test.db")
    monkeypatch.setenv("ENVIRONMENT", "Production")
    monkeypatch.setenv("logfire_token", "token-123")

    settings = Settings()

    assert settings.sqlite_db_path == "/tmp/routinely-test.db"
    assert settings.environment == "Production"
    assert settings.logfire_token == "token-123"


def test_defaults_without_env_file(monkeypatch: pytest.MonkeyPatch) -> None:
    """Test defaults apply when nothing is configured."""
    for name in ("ENVIRONMENT", "SQLITE_DB_PATH", "LOGFIRE_TOKEN", "SERVICE_NAME"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.environment == "development"
    assert settings.sqlite_db_path == "data/routinely.db"
    assert settings.logfire_token is None
    assert settings.service_name == "routinely"


def test_override_window_constants() -> None:
    """Test override limits and history cap."""
    assert Constants.OVERRIDE_MIN_MINUTES == 10
    assert Constants.OVERRIDE_MAX_MINUTES == 60
    assert Constants.COMPLETION_HISTORY_LIMIT == 100
