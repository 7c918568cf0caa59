"""
In-memory asset store.

Dict-backed implementation of AssetStore for tests and for runs that should
not touch the disk (CACHE_BACKEND=memory). Contents vanish with the process.
"""

from __future__ import annotations

from modelcache.cache.base import AssetStore
from modelcache.types import CacheInfoSummary, CachedAsset


class InMemoryAssetStore(AssetStore):
    """Process-local asset store."""

    def __init__(self) -> None:
        self._assets: dict[str, CachedAsset] = {}
        self._open = False

    async def open(self) -> InMemoryAssetStore:
        self._open = True
        return self

    async def close(self) -> None:
        self._open = False

    def _check_open(self) -> None:
        if not self._open:
            raise RuntimeError("InMemoryAssetStore not initialized. Call open() first.")

    async def get(self, identity: str) -> CachedAsset | None:
        self._check_open()
        return self._assets.get(identity)

    async def put(self, asset: CachedAsset) -> None:
        self._check_open()
        self._assets[asset.identity] = asset

    async def delete(self, identity: str) -> None:
        self._check_open()
        self._assets.pop(identity, None)

    async def delete_all(self) -> None:
        self._check_open()
        self._assets.clear()

    async def list_all(self) -> list[CacheInfoSummary]:
        self._check_open()
        summaries = [asset.summary() for asset in self._assets.values()]
        return sorted(summaries, key=lambda s: s.inserted_at)
