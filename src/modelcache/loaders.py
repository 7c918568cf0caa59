"""
Lazily loaded companion data.

Model packages often ship a small JSON document next to the weights (a voice
table, a vocabulary, a label map). JSONResourceLoader fetches it once on
first use and keeps the parsed value for the rest of the process. It is an
ordinary object, so callers pass it where needed and tests swap in a fake.
"""

from __future__ import annotations

import asyncio
from typing import Any

import orjson

from modelcache.exceptions import ResourceDecodeError
from modelcache.logging import get_logger
from modelcache.retrieval.downloader import StreamingDownloader

logger = get_logger(__name__)


class JSONResourceLoader:
    """Loads one JSON document on first access and memoizes it.

    The value stays loaded until reset() or process exit. Concurrent first
    calls share a single fetch.
    """

    def __init__(self, location: str, downloader: StreamingDownloader) -> None:
        """Initialize the loader.

        Args:
            location: http(s) URL of the JSON document.
            downloader: Downloader used for the single fetch.
        """
        self.location = location
        self.downloader = downloader
        self._value: Any = None
        self._loaded = False
        self._lock = asyncio.Lock()

    @property
    def is_loaded(self) -> bool:
        """Whether the document has been fetched and parsed."""
        return self._loaded

    async def load(self) -> Any:
        """Return the parsed document, fetching it on first call.

        Raises:
            ResourceDecodeError: If the document is not valid JSON.
            DownloadError: If the fetch fails; a later call retries.
        """
        if self._loaded:
            return self._value

        async with self._lock:
            if self._loaded:
                return self._value

            raw = await self.downloader.download(self.location)
            try:
                value = orjson.loads(raw)
            except orjson.JSONDecodeError as e:
                raise ResourceDecodeError(
                    "Companion resource is not valid JSON",
                    context={"location": self.location, "error": str(e)},
                ) from e

            self._value = value
            self._loaded = True

            if isinstance(value, dict):
                logger.info("Loaded companion resource", location=self.location, keys=list(value))
            else:
                logger.info("Loaded companion resource", location=self.location)
            return value

    def keys(self) -> list[str]:
        """Top-level keys of a loaded object document; empty before load."""
        if not self._loaded or not isinstance(self._value, dict):
            return []
        return list(self._value.keys())

    def reset(self) -> None:
        """Forget the loaded value so the next load() fetches again."""
        self._value = None
        self._loaded = False
