"""Shared utility functions and constants."""

from __future__ import annotations

ILLEGAL_FILENAME_CHARS = '<>:"/\\|?*\0'
SAFE_REPLACEMENT = "_"


def format_size(size_bytes: int) -> str:
    """Format byte count to human-readable string."""
    if size_bytes < 1024:
        return f"{size_bytes} B"
    elif size_bytes < 1024 * 1024:
        return f"{size_bytes / 1024:.1f} KB"
    elif size_bytes < 1024 * 1024 * 1024:
        return f"{size_bytes / (1024 * 1024):.1f} MB"
    else:
        return f"{size_bytes / (1024 * 1024 * 1024):.2f} GB"


def escape_filename(name: str) -> str:
    """Replace every illegal filename character with ``SAFE_REPLACEMENT``.

    ``.`` and ``..`` are not illegal character-wise but cannot be folder
    names, so only their dots are replaced.
    """
    if name in (".", ".."):
        return name.replace(".", SAFE_REPLACEMENT)
    for ch in ILLEGAL_FILENAME_CHARS:
        name = name.replace(ch, SAFE_REPLACEMENT)
    return name
