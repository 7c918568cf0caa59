"""Store factory driven by settings."""

from __future__ import annotations

from modelcache.cache.base import AssetStore
from modelcache.cache.memory_store import InMemoryAssetStore
from modelcache.cache.sqlite_store import SQLiteAssetStore
from modelcache.config import Settings


def create_store(settings: Settings) -> AssetStore:
    """Build the asset store selected by settings.CACHE_BACKEND."""
    if settings.CACHE_BACKEND == "memory":
        return InMemoryAssetStore()
    return SQLiteAssetStore(settings.db_path)
