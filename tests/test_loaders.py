"""
Tests for the lazily loaded JSON companion resource.
"""

from __future__ import annotations

import asyncio

import httpx
import pytest

from http_mocks import chunked_response, recording_client
from modelcache.config import Settings
from modelcache.exceptions import DownloadHTTPError, ResourceDecodeError
from modelcache.loaders import JSONResourceLoader
from modelcache.retrieval.downloader import StreamingDownloader

VOICES_URL = "https://models.example.com/kitten/voices.json"
VOICES = b'{"expr-voice-2-m": [0.1, 0.2], "expr-voice-2-f": [0.3, 0.4]}'


class TestJSONResourceLoader:
    """Test single-fetch memoization."""

    @pytest.mark.asyncio
    async def test_loads_once(self, cache_settings: Settings) -> None:
        """Test repeated loads reuse the first fetch."""
        client, transport = recording_client(lambda request: chunked_response([VOICES]))
        loader = JSONResourceLoader(VOICES_URL, StreamingDownloader(client=client, settings=cache_settings))

        assert loader.is_loaded is False
        assert loader.keys() == []

        first = await loader.load()
        second = await loader.load()

        assert first is second
        assert first["expr-voice-2-f"] == [0.3, 0.4]
        assert loader.keys() == ["expr-voice-2-m", "expr-voice-2-f"]
        assert len(transport.requests) == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_concurrent_first_loads_share_fetch(self, cache_settings: Settings) -> None:
        """Test concurrent first calls make one request."""
        gate = asyncio.Event()

        async def handler(request: httpx.Request) -> httpx.Response:
            await gate.wait()
            return chunked_response([VOICES])

        client, transport = recording_client(handler)
        loader = JSONResourceLoader(VOICES_URL, StreamingDownloader(client=client, settings=cache_settings))

        tasks = [asyncio.create_task(loader.load()) for _ in range(3)]
        for _ in range(5):
            await asyncio.sleep(0)
        gate.set()
        results = await asyncio.gather(*tasks)

        assert all(r == results[0] for r in results)
        assert len(transport.requests) == 1
        await client.aclose()

    @pytest.mark.asyncio
    async def test_invalid_json(self, cache_settings: Settings) -> None:
        """Test malformed documents raise ResourceDecodeError."""
        client, _ = recording_client(lambda request: chunked_response([b"{not json"]))
        loader = JSONResourceLoader(VOICES_URL, StreamingDownloader(client=client, settings=cache_settings))

        with pytest.raises(ResourceDecodeError) as exc_info:
            await loader.load()

        assert exc_info.value.context["location"] == VOICES_URL
        assert loader.is_loaded is False
        await client.aclose()

    @pytest.mark.asyncio
    async def test_failed_fetch_is_retried(self, cache_settings: Settings) -> None:
        """Test a failed first load does not poison later loads."""
        responses = [httpx.Response(500), chunked_response([VOICES])]
        client, transport = recording_client(lambda request: responses.pop(0))
        loader = JSONResourceLoader(VOICES_URL, StreamingDownloader(client=client, settings=cache_settings))

        with pytest.raises(DownloadHTTPError):
            await loader.load()
        assert (await loader.load())["expr-voice-2-m"] == [0.1, 0.2]
        assert len(transport.requests) == 2
        await client.aclose()

    @pytest.mark.asyncio
    async def test_reset_refetches(self, cache_settings: Settings) -> None:
        """Test reset() forces a new fetch."""
        client, transport = recording_client(lambda request: chunked_response([VOICES]))
        loader = JSONResourceLoader(VOICES_URL, StreamingDownloader(client=client, settings=cache_settings))

        await loader.load()
        loader.reset()
        assert loader.is_loaded is False

        await loader.load()
        assert len(transport.requests) == 2
        await client.aclose()

    @pytest.mark.asyncio
    async def test_non_object_document(self, cache_settings: Settings) -> None:
        """Test keys() is empty for list documents."""
        client, _ = recording_client(lambda request: chunked_response([b"[1, 2, 3]"]))
        loader = JSONResourceLoader(VOICES_URL, StreamingDownloader(client=client, settings=cache_settings))

        assert await loader.load() == [1, 2, 3]
        assert loader.keys() == []
        await client.aclose()
