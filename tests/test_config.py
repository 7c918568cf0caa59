"""
Tests for configuration module.
"""

from __future__ import annotations

import os
from pathlib import Path
from unittest.mock import patch

import pytest
from pydantic import ValidationError

from modelcache.config import Settings, clear_settings_cache, get_settings, load_settings
from modelcache.exceptions import ConfigurationError


class TestSettingsValidation:
    """Tests for Settings validation."""

    def test_settings_loads_from_env(self, mock_env_vars: dict[str, str]) -> None:
        """Test that settings correctly loads from environment variables."""
        settings = get_settings()

        assert settings.CACHE_DIR == Path(mock_env_vars["CACHE_DIR"])
        assert settings.CACHE_DB_NAME == "test_models.db"
        assert settings.DOWNLOAD_TIMEOUT == 15.0
        assert settings.COALESCE_DOWNLOADS is False
        assert settings.LOG_LEVEL == "DEBUG"

    def test_defaults(self) -> None:
        """Test defaults when nothing is configured."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)

        assert settings.CACHE_BACKEND == "sqlite"
        assert settings.CACHE_DB_NAME == "model_cache.db"
        assert settings.DOWNLOAD_CHUNK_SIZE is None
        assert settings.COALESCE_DOWNLOADS is True
        assert settings.USER_AGENT.startswith("modelcache/")
        assert settings.LOG_FILE is None

    @pytest.mark.parametrize("db_name", ["", "   ", "nested/models.db", "../models.db"])
    def test_db_name_must_be_file_name(self, db_name: str) -> None:
        """Test that CACHE_DB_NAME rejects paths and empty names."""
        with pytest.raises(ValidationError) as exc_info:
            Settings(_env_file=None, CACHE_DB_NAME=db_name)

        assert "CACHE_DB_NAME" in str(exc_info.value)

    def test_invalid_backend(self) -> None:
        """Test that an unknown backend is rejected."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, CACHE_BACKEND="indexeddb")

    def test_non_positive_timeout(self) -> None:
        """Test that DOWNLOAD_TIMEOUT must be positive."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, DOWNLOAD_TIMEOUT=0)

    def test_chunk_size_must_be_positive(self) -> None:
        """Test that DOWNLOAD_CHUNK_SIZE must be at least one byte."""
        with pytest.raises(ValidationError):
            Settings(_env_file=None, DOWNLOAD_CHUNK_SIZE=0)


class TestSettingsHelpers:
    """Tests for derived paths and display."""

    def test_db_path(self, temp_dir: Path) -> None:
        """Test that db_path joins the directory and file name."""
        settings = Settings(_env_file=None, CACHE_DIR=temp_dir, CACHE_DB_NAME="m.db")
        assert settings.db_path == temp_dir / "m.db"

    def test_ensure_directories(self, mock_settings: Settings) -> None:
        """Test that the cache directory is created."""
        assert mock_settings.CACHE_DIR.is_dir()

    def test_redacted_display(self, cache_settings: Settings) -> None:
        """Test that every setting is listed for display."""
        display = cache_settings.redacted_display()

        assert display["CACHE_DIR"] == str(cache_settings.CACHE_DIR)
        assert display["LOG_FILE"] is None
        assert set(display) == {
            "CACHE_DIR",
            "CACHE_DB_NAME",
            "CACHE_BACKEND",
            "DOWNLOAD_TIMEOUT",
            "DOWNLOAD_CHUNK_SIZE",
            "USER_AGENT",
            "COALESCE_DOWNLOADS",
            "LOG_LEVEL",
            "LOG_FILE",
        }


class TestSettingsCache:
    """Tests for the settings singleton."""

    def test_get_settings_is_cached(self, mock_env_vars: dict[str, str]) -> None:
        """Test that repeated calls return the same instance."""
        assert get_settings() is get_settings()

    def test_clear_settings_cache(self, mock_env_vars: dict[str, str]) -> None:
        """Test that clearing the cache picks up new environment values."""
        first = get_settings()

        with patch.dict(os.environ, {"DOWNLOAD_TIMEOUT": "99"}):
            clear_settings_cache()
            second = get_settings()

        assert first is not second
        assert second.DOWNLOAD_TIMEOUT == 99.0


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_reloads_environment(self, mock_env_vars: dict[str, str]) -> None:
        """Test that load_settings returns the current environment."""
        assert load_settings().CACHE_DB_NAME == "test_models.db"

    def test_invalid_configuration(self, mock_env_vars: dict[str, str]) -> None:
        """Test that validation failures become ConfigurationError."""
        with patch.dict(os.environ, {"CACHE_BACKEND": "indexeddb"}):
            with pytest.raises(ConfigurationError) as exc_info:
                load_settings()

        assert exc_info.value.context["fields"] == ["CACHE_BACKEND"]
