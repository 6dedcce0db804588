"""Configuration management for ormsync.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded once and is
immutable during runtime; the Builder receives the values it needs through
``BuilderOptions`` rather than reading process-wide state.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="ORMSYNC_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "ormsync"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"

    # Database Settings
    database_url: str = "mysql+pymysql://root@localhost:3306/ormsync"
    db_prefix: str = Field(
        default="",
        description="Table name prefix applied to objects with use_db_prefix enabled",
    )
    db_pool_size: int = 5
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Object Configuration Settings
    object_config_path: str = "./configs/objects"

    # Builder Settings
    foreign_keys: bool = Field(
        default=True,
        description="Create foreign key constraints for object links",
    )
    sql_log_enabled: bool = Field(
        default=False,
        description="Append every executed DDL statement to the SQL log",
    )
    sql_log_prefix: str = "0.1"
    sql_log_path: str = "./logs/"

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "console"

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept log levels in any case."""
        if isinstance(v, str):
            return v.upper()
        return v

    @field_validator("sql_log_path")
    @classmethod
    def ensure_trailing_separator(cls, v: str) -> str:
        """Log file names are appended directly to the path."""
        if v and not v.endswith("/"):
            return v + "/"
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    This function caches the settings instance to avoid reloading
    configuration on every call. Settings are loaded once at startup.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
