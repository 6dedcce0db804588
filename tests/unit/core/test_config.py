import os
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from ormsync.application.services.builder import BuilderOptions
from ormsync.core.config import Settings, get_settings


def test_settings_defaults():
    """Test that settings load with correct defaults."""
    get_settings.cache_clear()

    settings = Settings(_env_file=None)

    assert settings.app_name == "ormsync"
    assert settings.environment == "development"
    assert settings.db_prefix == ""
    assert settings.foreign_keys is True
    assert settings.sql_log_enabled is False
    assert settings.sql_log_prefix == "0.1"
    assert settings.sql_log_path == "./logs/"
    assert settings.is_development is True


def test_settings_env_override():
    """Test that environment variables override defaults."""
    get_settings.cache_clear()

    with patch.dict(os.environ, {
        "ORMSYNC_ENVIRONMENT": "production",
        "ORMSYNC_DB_PREFIX": "app_",
        "ORMSYNC_FOREIGN_KEYS": "false",
        "ORMSYNC_SQL_LOG_ENABLED": "true",
        "ORMSYNC_SQL_LOG_PATH": "/var/log/ormsync",
    }):
        settings = Settings(_env_file=None)

        assert settings.environment == "production"
        assert settings.db_prefix == "app_"
        assert settings.foreign_keys is False
        assert settings.sql_log_enabled is True
        assert settings.sql_log_path == "/var/log/ormsync/"
        assert settings.is_development is False


def test_log_level_case_insensitive():
    assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"


def test_invalid_environment():
    with pytest.raises(ValidationError):
        Settings(_env_file=None, environment="staging")


def test_get_settings_is_cached():
    get_settings.cache_clear()
    assert get_settings() is get_settings()


def test_builder_options_from_settings():
    settings = Settings(
        _env_file=None,
        foreign_keys=False,
        sql_log_enabled=True,
        sql_log_prefix="1.4",
        sql_log_path="logs",
    )

    options = BuilderOptions.from_settings(settings)

    assert options == BuilderOptions(
        foreign_keys=False,
        write_log=True,
        log_prefix="1.4",
        logs_path="logs/",
    )
