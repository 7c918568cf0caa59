"""
Configuration management using pydantic-settings.

Loads configuration from environment variables and .env files.
Validates fields and provides typed access to settings.
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from modelcache import __version__
from modelcache.exceptions import ConfigurationError


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    All settings are optional:
        CACHE_DIR: Directory holding the cache database
        CACHE_DB_NAME: File name of the SQLite database inside CACHE_DIR
        CACHE_BACKEND: "sqlite" (durable) or "memory" (process-local)
        DOWNLOAD_TIMEOUT: Network timeout in seconds
        DOWNLOAD_CHUNK_SIZE: Re-chunk the response body to this size (bytes)
        USER_AGENT: User-Agent header sent with downloads
        COALESCE_DOWNLOADS: Share one download between concurrent requests
        LOG_LEVEL: Logging level
        LOG_FILE: Optional JSON Lines log file
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Storage
    CACHE_DIR: Path = Field(default=Path(".cache"), description="Cache directory")
    CACHE_DB_NAME: str = Field(
        default="model_cache.db", description="SQLite database file name"
    )
    CACHE_BACKEND: Literal["sqlite", "memory"] = Field(
        default="sqlite", description="Asset store backend"
    )

    # Network
    DOWNLOAD_TIMEOUT: float = Field(
        default=60.0, gt=0.0, description="Download timeout in seconds"
    )
    DOWNLOAD_CHUNK_SIZE: int | None = Field(
        default=None,
        ge=1,
        description="Body chunk size in bytes (None keeps transport chunks)",
    )
    USER_AGENT: str = Field(
        default=f"modelcache/{__version__}", description="HTTP User-Agent"
    )
    COALESCE_DOWNLOADS: bool = Field(
        default=True,
        description="Share one in-flight download between callers of the same identity",
    )

    # Logging
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Logging level"
    )
    LOG_FILE: Path | None = Field(default=None, description="JSON Lines log file")

    @field_validator("CACHE_DB_NAME")
    @classmethod
    def validate_db_name(cls, v: str) -> str:
        """Validate that CACHE_DB_NAME is a bare file name."""
        name = v.strip()
        if not name or Path(name).name != name:
            raise ValueError("CACHE_DB_NAME must be a file name, not a path")
        return name

    @property
    def db_path(self) -> Path:
        """Full path of the SQLite database."""
        return self.CACHE_DIR / self.CACHE_DB_NAME

    def ensure_directories(self) -> None:
        """Create the cache directory if it doesn't exist."""
        self.CACHE_DIR.mkdir(parents=True, exist_ok=True)

    def redacted_display(self) -> dict[str, str | int | float | bool | None]:
        """Return settings for display."""
        return {
            "CACHE_DIR": str(self.CACHE_DIR),
            "CACHE_DB_NAME": self.CACHE_DB_NAME,
            "CACHE_BACKEND": self.CACHE_BACKEND,
            "DOWNLOAD_TIMEOUT": self.DOWNLOAD_TIMEOUT,
            "DOWNLOAD_CHUNK_SIZE": self.DOWNLOAD_CHUNK_SIZE,
            "USER_AGENT": self.USER_AGENT,
            "COALESCE_DOWNLOADS": self.COALESCE_DOWNLOADS,
            "LOG_LEVEL": self.LOG_LEVEL,
            "LOG_FILE": str(self.LOG_FILE) if self.LOG_FILE else None,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton.

    Returns:
        Settings instance loaded from environment.

    Raises:
        ValidationError: If settings are invalid.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()


def load_settings() -> Settings:
    """Reload settings from the environment.

    Raises:
        ConfigurationError: If any setting fails validation.
    """
    clear_settings_cache()
    try:
        return get_settings()
    except ValidationError as e:
        fields = [".".join(str(part) for part in error["loc"]) for error in e.errors()]
        raise ConfigurationError("Configuration is invalid", context={"fields": fields}) from e
