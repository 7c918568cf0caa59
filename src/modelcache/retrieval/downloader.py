"""
Streaming HTTP downloader for model assets.

Downloads one resource into a single contiguous buffer, reporting progress
as chunks arrive. The total size does not need to be known in advance.
"""

from __future__ import annotations

from collections.abc import AsyncIterator, Callable
from urllib.parse import urlparse

import httpx

from modelcache.config import Settings, get_settings
from modelcache.exceptions import (
    DownloadHTTPError,
    DownloadStreamError,
    InvalidLocationError,
)
from modelcache.logging import get_logger
from modelcache.types import DownloadProgress, ProgressCallback

logger = get_logger(__name__)


def validate_location(location: str) -> str:
    """Normalize and validate a download location.

    Args:
        location: Absolute http(s) URL.

    Returns:
        The stripped URL.

    Raises:
        InvalidLocationError: If the location is empty or not an http(s) URL.
    """
    resolved = location.strip()
    if not resolved:
        raise InvalidLocationError("Download location cannot be empty")

    parsed = urlparse(resolved)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise InvalidLocationError(
            "Download location must be a full HTTP(S) URL",
            context={"location": resolved},
        )
    return resolved


def parse_content_length(value: str | None) -> int | None:
    """Parse a Content-Length header; None when absent or unusable."""
    if value is None:
        return None
    try:
        length = int(value)
    except ValueError:
        return None
    return length if length > 0 else None


async def assemble_chunks(
    chunks: AsyncIterator[bytes],
    total_bytes: int | None = None,
    on_progress: ProgressCallback | None = None,
    wire_bytes: Callable[[], int] | None = None,
) -> bytes:
    """Consume a chunk stream once and reassemble it into one buffer.

    Args:
        chunks: Single-pass async iterator of body chunks.
        total_bytes: Advertised total length, if any.
        on_progress: Called with the completion percentage after each chunk,
            only when total_bytes is known. Repeated percentages are skipped.
        wire_bytes: Returns the bytes received on the wire so far. Use it
            when chunks are decoded (compressed) and total_bytes counts the
            encoded body.

    Returns:
        All chunks concatenated in arrival order.
    """
    parts: list[bytes] = []
    received = 0
    last_percent: float | None = None

    def report(count: int) -> None:
        nonlocal last_percent
        percent = DownloadProgress(received_bytes=count, total_bytes=total_bytes).percent
        if on_progress is not None and percent is not None and percent != last_percent:
            last_percent = percent
            on_progress(percent)

    async for chunk in chunks:
        if not chunk:
            continue
        parts.append(chunk)
        received += len(chunk)
        report(wire_bytes() if wire_bytes is not None else received)

    if wire_bytes is not None:
        # A compression trailer can arrive without producing decoded output
        report(wire_bytes())

    return b"".join(parts)


class StreamingDownloader:
    """Downloads assets over HTTP(S) with progress reporting.

    Makes exactly one attempt per call; retries are the caller's decision.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        settings: Settings | None = None,
        chunk_size: int | None = None,
    ) -> None:
        """Initialize the downloader.

        Args:
            client: HTTP client to use. Not closed by close() when injected.
            settings: Settings for timeout, User-Agent and chunk size.
            chunk_size: Re-chunk the body to this size. None keeps the
                chunks the transport delivers.
        """
        self.settings = settings or get_settings()
        self.chunk_size = chunk_size if chunk_size is not None else self.settings.DOWNLOAD_CHUNK_SIZE
        self._client = client
        self._owns_client = client is None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.settings.DOWNLOAD_TIMEOUT,
                follow_redirects=True,
                headers={"User-Agent": self.settings.USER_AGENT},
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client if this downloader created it."""
        if self._client and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def download(
        self,
        location: str,
        on_progress: ProgressCallback | None = None,
    ) -> bytes:
        """Download a resource into memory.

        Args:
            location: Absolute http(s) URL.
            on_progress: Receives the completion percentage after each chunk
                when the server advertises Content-Length.

        Returns:
            The complete response body.

        Raises:
            InvalidLocationError: If location is not an http(s) URL.
            DownloadHTTPError: If the server answers with a failure status.
            DownloadStreamError: If the connection fails or drops mid-stream.
        """
        url = validate_location(location)
        client = await self._get_client()

        logger.info("Downloading asset", url=url)

        response: httpx.Response | None = None
        try:
            async with client.stream("GET", url) as response:
                if not response.is_success:
                    logger.error(
                        "Download failed with HTTP status",
                        url=url,
                        status_code=response.status_code,
                    )
                    raise DownloadHTTPError(
                        f"Failed to download asset: {response.status_code} {response.reason_phrase}",
                        status_code=response.status_code,
                        context={"url": url},
                    )

                total = parse_content_length(response.headers.get("content-length"))
                # Content-Length counts encoded bytes; aiter_bytes yields decoded ones
                encoding = response.headers.get("content-encoding", "identity").strip().lower()
                data = await assemble_chunks(
                    response.aiter_bytes(self.chunk_size),
                    total_bytes=total,
                    on_progress=on_progress,
                    wire_bytes=(
                        None if encoding == "identity" else lambda: response.num_bytes_downloaded
                    ),
                )
        except httpx.TransportError as e:
            received = response.num_bytes_downloaded if response is not None else 0
            logger.error(
                "Download stream failed", url=url, received_bytes=received, error=str(e)
            )
            raise DownloadStreamError(
                "Transport failed while downloading asset",
                context={"url": url, "received_bytes": received, "error": str(e)},
            ) from e

        logger.info("Downloaded asset", url=url, size=len(data))
        return data
