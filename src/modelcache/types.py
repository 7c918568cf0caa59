"""
Core types for the model cache.

This module defines the data structures shared by the store, the downloader
and the cache manager:
- CachedAsset: the durable record (bytes plus metadata)
- CacheInfoSummary: metadata-only projection used for listings
- DownloadProgress: ephemeral progress value emitted during a download
- Helper functions for timestamps
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timezone

# Receives the completion percentage (0-100) of an in-flight download.
ProgressCallback = Callable[[float], None]


def utc_now() -> datetime:
    """Get current UTC time with timezone info."""
    return datetime.now(timezone.utc)


def epoch_millis(moment: datetime | None = None) -> int:
    """Convert a datetime (default: now) to integer epoch milliseconds."""
    moment = moment or utc_now()
    return int(moment.timestamp() * 1000)


def from_epoch_millis(value: int) -> datetime:
    """Convert epoch milliseconds back to an aware UTC datetime."""
    return datetime.fromtimestamp(value / 1000, tz=timezone.utc)


@dataclass(frozen=True)
class CacheInfoSummary:
    """Metadata of a cached asset, without its bytes."""

    identity: str
    inserted_at: int  # epoch milliseconds
    size_bytes: int

    @property
    def inserted_at_datetime(self) -> datetime:
        """Insertion time as an aware UTC datetime."""
        return from_epoch_millis(self.inserted_at)


@dataclass(frozen=True)
class CachedAsset:
    """A complete asset persisted in the durable store.

    One record per identity. Records are never mutated; writing the same
    identity again replaces the whole record.
    """

    identity: str
    data: bytes
    inserted_at: int  # epoch milliseconds
    size_bytes: int

    def __post_init__(self) -> None:
        if self.size_bytes != len(self.data):
            raise ValueError(
                f"size_bytes ({self.size_bytes}) does not match data length ({len(self.data)})"
            )

    @classmethod
    def create(cls, identity: str, data: bytes) -> CachedAsset:
        """Create a record stamped with the current time."""
        return cls(
            identity=identity,
            data=data,
            inserted_at=epoch_millis(),
            size_bytes=len(data),
        )

    @property
    def inserted_at_datetime(self) -> datetime:
        """Insertion time as an aware UTC datetime."""
        return from_epoch_millis(self.inserted_at)

    def summary(self) -> CacheInfoSummary:
        """Project this record to its metadata-only summary."""
        return CacheInfoSummary(
            identity=self.identity,
            inserted_at=self.inserted_at,
            size_bytes=self.size_bytes,
        )


@dataclass(frozen=True)
class DownloadProgress:
    """Progress of a single download.

    total_bytes is None when the server did not advertise a length.
    """

    received_bytes: int
    total_bytes: int | None = None

    @property
    def percent(self) -> float | None:
        """Completion percentage, or None when the total is unknown."""
        if not self.total_bytes:
            return None
        return self.received_bytes * 100 / self.total_bytes
