"""
Fetch-through cache for model assets.

CacheManager is the single entry point callers use to obtain model bytes:
it serves cached assets without network access and otherwise downloads,
stores and returns them. Storage is an optimization; a failing store never
prevents delivery of downloaded bytes.
"""

from __future__ import annotations

from types import TracebackType

from modelcache.cache.base import AssetStore
from modelcache.cache.factory import create_store
from modelcache.coalescing import DownloadCoalescer
from modelcache.config import Settings, get_settings
from modelcache.exceptions import StorageReadError, StorageUnavailable, StorageWriteError
from modelcache.logging import get_logger, log_context
from modelcache.retrieval.downloader import StreamingDownloader
from modelcache.types import CacheInfoSummary, CachedAsset, ProgressCallback

logger = get_logger(__name__)


class CacheManager:
    """Coordinates the asset store and the streaming downloader.

    Lifecycle: call open() (or use ``async with``) before use and close()
    when done. If the store cannot be opened the manager keeps working in
    network-only mode: every fetch downloads and nothing is cached.
    """

    def __init__(
        self,
        store: AssetStore,
        downloader: StreamingDownloader,
        coalesce: bool = True,
    ) -> None:
        """Initialize the manager.

        Args:
            store: Durable store for downloaded assets.
            downloader: Downloader used on cache misses.
            coalesce: Share one download between concurrent misses for the
                same identity.
        """
        self.store = store
        self.downloader = downloader
        self._coalescer: DownloadCoalescer[bytes] | None = (
            DownloadCoalescer() if coalesce else None
        )
        self._store_ready = False
        self._opened = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> CacheManager:
        """Build a manager with the store and downloader settings select."""
        settings = settings or get_settings()
        return cls(
            store=create_store(settings),
            downloader=StreamingDownloader(settings=settings),
            coalesce=settings.COALESCE_DOWNLOADS,
        )

    @property
    def caching_enabled(self) -> bool:
        """False when the store could not be opened."""
        return self._store_ready

    async def open(self) -> CacheManager:
        """Open the underlying store. Idempotent."""
        if self._opened:
            return self
        try:
            await self.store.open()
            self._store_ready = True
        except StorageUnavailable as e:
            logger.warning("Asset store unavailable, caching disabled", error=str(e))
            self._store_ready = False
        self._opened = True
        return self

    async def close(self) -> None:
        """Close the store and the downloader."""
        if self._store_ready:
            await self.store.close()
        await self.downloader.close()
        self._store_ready = False
        self._opened = False

    async def __aenter__(self) -> CacheManager:
        return await self.open()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()

    def _check_open(self) -> None:
        if not self._opened:
            raise RuntimeError("CacheManager not initialized. Call open() first.")

    async def fetch_resource(
        self,
        identity: str,
        location: str,
        on_progress: ProgressCallback | None = None,
    ) -> bytes:
        """Return the asset bytes, downloading and caching them on a miss.

        Args:
            identity: Cache key for the asset.
            location: http(s) URL to download from on a miss.
            on_progress: Receives download percentages. Not called on a hit.

        Returns:
            The complete asset bytes.

        Raises:
            DownloadHTTPError: If the server answers with a failure status.
            DownloadStreamError: If the transfer fails.
            InvalidLocationError: If location is not an http(s) URL.
        """
        self._check_open()

        with log_context(identity=identity, operation="fetch"):
            if self._store_ready:
                cached = await self._lookup(identity)
                if cached is not None:
                    logger.info("Asset loaded from cache", size=cached.size_bytes)
                    return cached.data

            if self._coalescer is None:
                return await self._download_and_store(identity, location, on_progress)

            return await self._coalescer.run(
                identity,
                lambda broadcast: self._download_and_store(identity, location, broadcast),
                on_progress,
            )

    async def _lookup(self, identity: str) -> CachedAsset | None:
        try:
            return await self.store.get(identity)
        except StorageReadError as e:
            logger.warning("Cache lookup failed, treating as a miss", identity=identity, error=str(e))
            return None

    async def _download_and_store(
        self,
        identity: str,
        location: str,
        on_progress: ProgressCallback | None,
    ) -> bytes:
        data = await self.downloader.download(location, on_progress)

        if self._store_ready:
            try:
                await self.store.put(CachedAsset.create(identity, data))
                logger.info("Asset cached", identity=identity, size=len(data))
            except StorageWriteError as e:
                logger.warning(
                    "Failed to cache asset, continuing without caching",
                    identity=identity,
                    error=str(e),
                )

        return data

    async def is_cached(self, identity: str) -> bool:
        """Whether the store holds identity.

        A failing store query is logged and reported as not cached.
        """
        self._check_open()
        if not self._store_ready:
            return False
        return await self._lookup(identity) is not None

    async def evict_one(self, identity: str) -> None:
        """Remove one asset from the cache; missing identities are ignored.

        Raises:
            StorageWriteError: If the store fails to delete.
        """
        self._check_open()
        if not self._store_ready:
            return
        with log_context(identity=identity, operation="evict"):
            await self.store.delete(identity)
            logger.info("Evicted cached asset")

    async def evict_all(self) -> None:
        """Remove every asset from the cache.

        Raises:
            StorageWriteError: If the store fails to clear.
        """
        self._check_open()
        if not self._store_ready:
            return
        with log_context(operation="evict_all"):
            await self.store.delete_all()
            logger.info("Cleared asset cache")

    async def cache_size(self) -> int:
        """Total bytes held in the cache; 0 if the store cannot be queried."""
        self._check_open()
        if not self._store_ready:
            return 0
        try:
            return await self.store.aggregate_size()
        except StorageReadError as e:
            logger.warning("Could not read cache size", error=str(e))
            return 0

    async def cache_entries(self) -> list[CacheInfoSummary]:
        """Metadata for every cached asset; empty if the store cannot be queried."""
        self._check_open()
        if not self._store_ready:
            return []
        try:
            return await self.store.list_all()
        except StorageReadError as e:
            logger.warning("Could not list cached assets", error=str(e))
            return []
