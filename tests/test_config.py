"""Tests for Flowboard settings."""

import pytest
from pydantic import ValidationError

from src.core import config as config_module
from src.core.config import BoardDefaults, DatabaseConfig, ServerConfig, Settings


def test_settings_defaults(monkeypatch):
    """Defaults apply when nothing is configured."""
    for name in ("FLOWBOARD_DB_URL", "FLOWBOARD_SERVER_PORT", "FLOWBOARD_NOTIFY_MAX_TEAM_RECIPIENTS"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings()

    assert settings.database.url == "sqlite:///data/flowboard.db"
    assert settings.database.busy_timeout_seconds == 5.0
    assert settings.server.port == 8000
    assert settings.server.user_header == "X-User-ID"
    assert settings.notifications.max_team_recipients == 5
    assert settings.board.default_columns == ["To Do", "In Progress", "Review", "Done"]
    assert settings.board.max_column_name_length == 50
    assert settings.log_level == "INFO"


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("FLOWBOARD_DB_URL", "sqlite:///tmp/other.db")
    monkeypatch.setenv("FLOWBOARD_SERVER_PORT", "9100")
    monkeypatch.setenv("FLOWBOARD_BOARD_DEFAULT_COLUMNS", '["Backlog", "Done"]')

    assert DatabaseConfig().url == "sqlite:///tmp/other.db"
    assert ServerConfig().port == 9100
    assert BoardDefaults().default_columns == ["Backlog", "Done"]


def test_port_range(monkeypatch):
    monkeypatch.setenv("FLOWBOARD_SERVER_PORT", "70000")

    with pytest.raises(ValidationError):
        ServerConfig()


def test_get_settings_is_cached(monkeypatch):
    monkeypatch.setattr(config_module, "settings", None)

    first = config_module.get_settings()
    assert config_module.get_settings() is first
    assert config_module.reload_settings() is not first
