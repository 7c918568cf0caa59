"""
Cache package for model asset persistence.

This package provides:
- AssetStore (base.py): abstract store interface
- SQLiteAssetStore (sqlite_store.py): durable SQLite-backed store
- InMemoryAssetStore (memory_store.py): dict-backed store for tests
- create_store (factory.py): backend selection from settings
- CacheManager (manager.py): fetch-through cache over a store and downloader
"""

from modelcache.cache.base import AssetStore
from modelcache.cache.factory import create_store
from modelcache.cache.manager import CacheManager
from modelcache.cache.memory_store import InMemoryAssetStore
from modelcache.cache.sqlite_store import SQLiteAssetStore

__all__ = [
    "AssetStore",
    "CacheManager",
    "InMemoryAssetStore",
    "SQLiteAssetStore",
    "create_store",
]
