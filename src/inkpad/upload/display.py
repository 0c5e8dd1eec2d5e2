"""Human-readable strings for the upload preview and drop zone."""
from __future__ import annotations

_UNITS = ("Bytes", "KB", "MB", "GB")


def format_file_size(size: int) -> str:
    """``1536`` -> ``"1.5 KB"``; two decimals, trailing zeros trimmed."""
    if size <= 0:
        return "0 Bytes"
    exponent = 0
    while exponent < len(_UNITS) - 1 and size >= 1024 ** (exponent + 1):
        exponent += 1
    value = round(size / 1024 ** exponent, 2)
    return f"{value:g} {_UNITS[exponent]}"


def max_size_hint(max_size: int) -> str:
    return f"Maximum file size {max_size / 1024 / 1024:g}MB."
