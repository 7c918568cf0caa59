"""
Network retrieval for model assets.

- StreamingDownloader: single-attempt HTTP(S) download with progress
- assemble_chunks: single-pass reassembly of a chunk stream
- validate_location: location checks performed before any I/O
"""

from modelcache.retrieval.downloader import (
    StreamingDownloader,
    assemble_chunks,
    validate_location,
)

__all__ = [
    "StreamingDownloader",
    "assemble_chunks",
    "validate_location",
]
