"""
Custom exception hierarchy for the model cache.

All exceptions inherit from ModelCacheError, which provides optional context
for structured error handling and logging.

Storage errors are isolated to the caching path; download errors always reach
the caller. A missing cache entry is not an error and has no exception.
"""

from __future__ import annotations

from typing import Any


class ModelCacheError(Exception):
    """Base exception for all model cache errors.

    Attributes:
        message: Human-readable error message.
        context: Optional structured context for logging/debugging.
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            ctx_str = ", ".join(f"{k}={v!r}" for k, v in self.context.items())
            return f"{self.message} ({ctx_str})"
        return self.message

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r}, context={self.context!r})"


class ConfigurationError(ModelCacheError):
    """Raised when configuration is invalid or missing."""

    pass


class StorageError(ModelCacheError):
    """Base class for durable store failures."""

    pass


class StorageUnavailable(StorageError):
    """Raised when the durable store cannot be opened or initialized.

    Fatal to caching but not to a single fetch: the cache manager falls back
    to network-only operation.

    Context should include:
        - path: The database path (for file-backed stores)
        - error: The underlying error message
    """

    pass


class StorageReadError(StorageError):
    """Raised when a query against an open store fails.

    The cache manager treats it as a miss (or an empty cache) and carries on.

    Context should include:
        - operation: get, list_all or aggregate_size
        - identity: The asset identity, when the query targets one key
        - error: The underlying error message
    """

    pass


class StorageWriteError(StorageError):
    """Raised when a put/delete against the store fails.

    Context should include:
        - operation: put, delete or delete_all
        - identity: The asset identity, when the operation targets one key
        - error: The underlying error message
    """

    pass


class DownloadError(ModelCacheError):
    """Base class for network download failures."""

    pass


class DownloadHTTPError(DownloadError):
    """Raised when the server answers with a non-success status.

    Attributes:
        status_code: The HTTP status returned by the server.
    """

    def __init__(
        self,
        message: str,
        status_code: int,
        context: dict[str, Any] | None = None,
    ) -> None:
        context = dict(context or {})
        context.setdefault("status_code", status_code)
        super().__init__(message, context)
        self.status_code = status_code


class DownloadStreamError(DownloadError):
    """Raised when the transport fails while connecting or mid-stream.

    Any bytes received before the failure are discarded.

    Context should include:
        - url: The location being downloaded
        - received_bytes: Bytes received before the failure
        - error: The underlying transport error
    """

    pass


class InvalidLocationError(DownloadError):
    """Raised when a download location is empty or not an http(s) URL."""

    pass


class ResourceDecodeError(ModelCacheError):
    """Raised when a companion JSON resource cannot be decoded."""

    pass
