"""
Base classes for asset storage.

AssetStore is the abstract interface every durable store implements:
- open/close lifecycle (open is idempotent and returns the store handle)
- get/put/delete/delete_all on single keys or the whole store
- list_all/aggregate_size for metadata-only introspection

Absence is reported as None from get(), never as an exception. Backend
failures surface as StorageReadError or StorageWriteError.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import TracebackType

from modelcache.types import CacheInfoSummary, CachedAsset


class AssetStore(ABC):
    """Abstract interface for asset store implementations."""

    @abstractmethod
    async def open(self) -> AssetStore:
        """Ensure the backing schema exists and return the store handle.

        Raises:
            StorageUnavailable: If the backend cannot be initialized.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release backend resources. Safe to call more than once."""
        ...

    @abstractmethod
    async def get(self, identity: str) -> CachedAsset | None:
        """Get a record, or None if absent.

        Raises:
            StorageReadError: If the backend query fails.
        """
        ...

    @abstractmethod
    async def put(self, asset: CachedAsset) -> None:
        """Insert or replace the record for asset.identity.

        Raises:
            StorageWriteError: If the write fails.
        """
        ...

    @abstractmethod
    async def delete(self, identity: str) -> None:
        """Delete a record if present."""
        ...

    @abstractmethod
    async def delete_all(self) -> None:
        """Delete every record."""
        ...

    @abstractmethod
    async def list_all(self) -> list[CacheInfoSummary]:
        """List metadata of all records without loading their bytes.

        Raises:
            StorageReadError: If the backend query fails.
        """
        ...

    async def aggregate_size(self) -> int:
        """Total size in bytes of all records."""
        return sum(summary.size_bytes for summary in await self.list_all())

    async def __aenter__(self) -> AssetStore:
        return await self.open()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.close()
