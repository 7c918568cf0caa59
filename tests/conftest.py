"""
Pytest configuration and fixtures for model cache tests.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Generator
from unittest.mock import patch

import pytest

from modelcache.cache.memory_store import InMemoryAssetStore
from modelcache.cache.sqlite_store import SQLiteAssetStore
from modelcache.config import Settings, clear_settings_cache


@pytest.fixture
def temp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test outputs."""
    return tmp_path


@pytest.fixture
def cache_settings(temp_dir: Path) -> Settings:
    """Settings pointing at a temporary cache directory, ignoring .env."""
    return Settings(_env_file=None, CACHE_DIR=temp_dir / "cache", LOG_LEVEL="DEBUG")


@pytest.fixture
def mock_env_vars(temp_dir: Path) -> Generator[dict[str, str], None, None]:
    """Provide mock environment variables for testing."""
    env_vars = {
        "CACHE_DIR": str(temp_dir / "env_cache"),
        "CACHE_DB_NAME": "test_models.db",
        "DOWNLOAD_TIMEOUT": "15",
        "COALESCE_DOWNLOADS": "false",
        "LOG_LEVEL": "DEBUG",
    }

    with patch.dict(os.environ, env_vars, clear=False):
        clear_settings_cache()
        yield env_vars


@pytest.fixture
def mock_settings(mock_env_vars: dict[str, str]) -> Generator[Settings, None, None]:
    """Provide a Settings instance loaded from the mock environment."""
    clear_settings_cache()
    from modelcache.config import get_settings

    settings = get_settings()
    settings.ensure_directories()
    yield settings
    clear_settings_cache()


@pytest.fixture
async def sqlite_store(temp_dir: Path) -> SQLiteAssetStore:
    """Create an opened SQLite asset store."""
    store = SQLiteAssetStore(temp_dir / "cache" / "models.db")
    await store.open()
    yield store
    await store.close()


@pytest.fixture
async def memory_store() -> InMemoryAssetStore:
    """Create an opened in-memory asset store."""
    store = InMemoryAssetStore()
    await store.open()
    yield store
    await store.close()


@pytest.fixture(autouse=True)
def reset_settings_cache() -> Generator[None, None, None]:
    """Automatically reset settings cache before and after each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()
