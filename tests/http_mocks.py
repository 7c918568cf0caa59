"""
HTTP test doubles built on httpx.MockTransport.
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncIterator, Callable, Sequence
from typing import Any

import httpx

MODEL_URL = "https://models.example.com/kitten/model.onnx"


class ChunkedStream(httpx.AsyncByteStream):
    """Response body that yields fixed chunks and can fail partway.

    fail_after is the index of the chunk at which the stream raises instead
    of yielding; len(chunks) fails after the last chunk.
    """

    def __init__(
        self,
        chunks: Sequence[bytes],
        fail_after: int | None = None,
    ) -> None:
        self.chunks = list(chunks)
        self.fail_after = fail_after

    async def __aiter__(self) -> AsyncIterator[bytes]:
        for index, chunk in enumerate(self.chunks):
            if index == self.fail_after:
                raise httpx.ReadError("connection reset by peer")
            yield chunk
        if self.fail_after is not None and self.fail_after >= len(self.chunks):
            raise httpx.ReadError("connection reset by peer")


def chunked_response(
    chunks: Sequence[bytes],
    advertise_length: bool = True,
    fail_after: int | None = None,
    status_code: int = 200,
    headers: dict[str, str] | None = None,
) -> httpx.Response:
    """Build a streaming response from chunks."""
    headers = dict(headers or {})
    if advertise_length:
        headers["Content-Length"] = str(sum(len(c) for c in chunks))
    return httpx.Response(
        status_code,
        headers=headers,
        stream=ChunkedStream(chunks, fail_after=fail_after),
    )


class RecordingTransport(httpx.MockTransport):
    """MockTransport that records every request it serves."""

    def __init__(self, handler: Callable[[httpx.Request], Any]) -> None:
        self.requests: list[httpx.Request] = []

        async def recording_handler(request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            result = handler(request)
            if inspect.isawaitable(result):
                result = await result
            return result

        super().__init__(recording_handler)


def recording_client(handler: Callable[[httpx.Request], Any]) -> tuple[httpx.AsyncClient, RecordingTransport]:
    """Build an AsyncClient over a RecordingTransport."""
    transport = RecordingTransport(handler)
    return httpx.AsyncClient(transport=transport), transport
