"""Snapshot format detection by file name suffix."""

from __future__ import annotations

from pathlib import Path

from core.constants import (
    ENTRY_ORIENTED_SUFFIXES,
    NORMALIZED_SUFFIXES,
    PAGE_ORIENTED_SUFFIXES,
)
from core.types import FormatTag


def detect_format(path: Path | str) -> FormatTag:
    """Classify a file by its case-insensitive name suffix.

    The file is never opened, so classification is independent of
    content and size. ``.jsonl.gz`` is tested before ``.json.gz``.

    Args:
        path: File path or name.

    Returns:
        Detected format tag, ``UNRECOGNIZED`` for anything else.
    """
    file_name = Path(path).name.lower()
    if file_name.endswith(NORMALIZED_SUFFIXES):
        return FormatTag.NORMALIZED
    if file_name.endswith(PAGE_ORIENTED_SUFFIXES):
        return FormatTag.PAGE_ORIENTED
    if file_name.endswith(ENTRY_ORIENTED_SUFFIXES):
        return FormatTag.ENTRY_ORIENTED
    return FormatTag.UNRECOGNIZED
