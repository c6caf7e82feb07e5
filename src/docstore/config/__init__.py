"""
Configuration Module
====================

Process-level settings for the document store bootstrap, loaded from
environment variables (``DOCSTORE_`` prefix) and an optional ``.env`` file
using Pydantic.

These describe the host environment: where the content root is, which
configuration files to read, and how to log. The connection parameters
themselves live in the configuration tree (see ``docstore.infrastructure``).
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ========== Constants ==========

DEFAULT_SECTION_NAME = "Settings"
"""Configuration section bound into ``StoreSettings`` when none is given."""

SECTION_DELIMITER = ":"
"""Separator for nested section paths, e.g. ``Databases:Orders``."""

ENV_NESTING_DELIMITER = "__"
"""Separator for nested keys in environment variable names."""


class AppSettings(BaseSettings):
    """
    Host environment settings loaded from environment variables.

    Uses Pydantic for validation and type safety.
    """

    # ========== Application ==========
    app_name: str = Field(default="docstore", description="Application name")
    environment: str = Field(default="development", description="Environment name")
    log_level: str = Field(default="INFO", description="Root log level")

    # ========== Host ==========
    content_root: Path = Field(
        default_factory=Path.cwd,
        description="Content root used to resolve relative certificate paths"
    )

    # ========== Configuration Sources ==========
    config_file: Path = Field(
        default=Path("appsettings.yaml"),
        description="Base YAML configuration file, relative to content_root"
    )
    config_env_prefix: str = Field(
        default="DOCSTORE__",
        description="Prefix of environment variables merged into the configuration tree"
    )

    model_config = SettingsConfigDict(
        env_prefix="DOCSTORE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Ensure environment is one of allowed values."""
        allowed = {"development", "staging", "production"}
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v.upper()

    @property
    def config_path(self) -> Path:
        """Absolute path of the base configuration file."""
        if self.config_file.is_absolute():
            return self.config_file
        return self.content_root / self.config_file

    @property
    def environment_config_path(self) -> Path:
        """Path of the per-environment overlay, e.g. ``appsettings.production.yaml``."""
        base = self.config_path
        return base.with_name(f"{base.stem}.{self.environment}{base.suffix}")


@lru_cache()
def get_settings() -> AppSettings:
    """Returns cached AppSettings instance."""
    return AppSettings()
