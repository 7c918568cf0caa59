"""Utility modules for the model cache."""

from modelcache.utils.formatting import format_bytes

__all__ = [
    "format_bytes",
]
