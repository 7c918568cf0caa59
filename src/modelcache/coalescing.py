"""
Request coalescing for concurrent downloads of the same asset.

The first caller for a key starts a shared task; callers arriving while it
runs join it and receive the same result or exception. Progress from the
shared task is broadcast to every joined caller.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from modelcache.logging import get_logger
from modelcache.types import ProgressCallback

logger = get_logger(__name__)

T = TypeVar("T")


@dataclass
class _InFlight(Generic[T]):
    """Shared state of one in-flight request."""

    listeners: list[ProgressCallback] = field(default_factory=list)
    waiters: int = 0
    task: asyncio.Task[T] | None = None

    def broadcast(self, percent: float) -> None:
        for listener in list(self.listeners):
            listener(percent)


class DownloadCoalescer(Generic[T]):
    """Deduplicate identical in-flight requests by key.

    A caller that is cancelled detaches from the shared task. The task itself
    is cancelled only when its last caller detaches.
    """

    def __init__(self) -> None:
        self._inflight: dict[str, _InFlight[T]] = {}

    def in_flight(self, key: str) -> bool:
        """Whether a shared task is currently running for key."""
        return key in self._inflight

    async def run(
        self,
        key: str,
        factory: Callable[[ProgressCallback], Awaitable[T]],
        on_progress: ProgressCallback | None = None,
    ) -> T:
        """Run factory for key, or join the run already in flight.

        Args:
            key: Deduplication key (the asset identity).
            factory: Builds the shared work; receives the progress broadcaster.
            on_progress: This caller's progress callback.

        Returns:
            The shared result.
        """
        entry = self._inflight.get(key)
        # A finished task may linger until its done-callback runs
        if entry is None or (entry.task is not None and entry.task.done()):
            entry = _InFlight()
            entry.task = asyncio.ensure_future(factory(entry.broadcast))
            self._inflight[key] = entry
            entry.task.add_done_callback(lambda _task: self._forget(key, entry))
        else:
            logger.debug("Joining in-flight download", key=key)

        if on_progress is not None:
            entry.listeners.append(on_progress)
        entry.waiters += 1

        assert entry.task is not None
        try:
            return await asyncio.shield(entry.task)
        except asyncio.CancelledError:
            if entry.waiters == 1 and not entry.task.done():
                logger.debug("Last caller left, cancelling download", key=key)
                entry.task.cancel()
            raise
        finally:
            entry.waiters -= 1
            if on_progress is not None and on_progress in entry.listeners:
                entry.listeners.remove(on_progress)

    def _forget(self, key: str, entry: _InFlight[T]) -> None:
        if self._inflight.get(key) is entry:
            del self._inflight[key]
