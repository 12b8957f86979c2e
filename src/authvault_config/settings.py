"""Storage settings loaded from environment variables.

Configuration sources (in priority order):
1. OS environment variables with the AUTHVAULT_ prefix
2. The .env file named by AUTHVAULT_ENV_FILE, if it exists
3. Default values

Uses pydantic-settings for automatic type coercion and validation.
"""

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

MEMORY_DATABASE_URL = "memory://"


def _resolve_env_file_path() -> Path | None:
    env_file_path = os.environ.get("AUTHVAULT_ENV_FILE")
    if not env_file_path:
        return None
    path = Path(env_file_path)
    return path if path.exists() else None


class Settings(BaseSettings):
    """Storage configuration.

    ``database_url`` is any SQLAlchemy async URL
    (``sqlite+aiosqlite://...``, ``postgresql+asyncpg://...``) or
    ``memory://`` for the in-process backend.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTHVAULT_",
        env_file=_resolve_env_file_path(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    database_url: str = "sqlite+aiosqlite:///./authvault.db"
    database_echo: bool = False

    # Seconds an issued session token stays valid
    token_lifetime: int = 3600

    log_level: str = "INFO"

    @field_validator("token_lifetime")
    @classmethod
    def _validate_token_lifetime(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("token_lifetime must be a positive number of seconds")
        return v

    @property
    def is_memory(self) -> bool:
        return self.database_url == MEMORY_DATABASE_URL

    @property
    def database_display(self) -> str:
        """Database URL without credentials, safe for logs."""
        url = self.database_url
        return url.split("@")[-1] if "@" in url else url


@lru_cache()
def get_settings() -> Settings:
    """Return cached settings."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for tests)."""
    get_settings.cache_clear()
