"""Human-readable formatting helpers for cache displays."""

from __future__ import annotations

BYTE_UNITS = ("Bytes", "KB", "MB", "GB", "TB")


def format_bytes(num_bytes: int) -> str:
    """Format a byte count with binary (1024) units.

    Values are rounded to two decimals with trailing zeros dropped.

    Examples:
        >>> format_bytes(0)
        '0 Bytes'
        >>> format_bytes(1536)
        '1.5 KB'
        >>> format_bytes(12_939_428)
        '12.34 MB'
    """
    if num_bytes == 0:
        return "0 Bytes"

    sign = "-" if num_bytes < 0 else ""
    value = float(abs(num_bytes))
    index = 0
    while value >= 1024 and index < len(BYTE_UNITS) - 1:
        value /= 1024
        index += 1

    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return f"{sign}{text} {BYTE_UNITS[index]}"
