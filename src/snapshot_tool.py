"""Public SDK surface for the snapshot tool.

This module provides a stable import path for library users.
It re-exports the run entry points and typed option models.
"""

from __future__ import annotations

from core.config import SnapshotConfig
from core.errors import (
    ArchiveCorruptError,
    SnapshotConfigError,
    SnapshotInputError,
    SnapshotOutputError,
    SnapshotToolError,
)
from core.types import (
    CanonicalRecord,
    FormatTag,
    RunOptions,
    RunResult,
    RunState,
    RunStats,
    SnapshotFile,
)
from ingest.archive_reader import open_archive_reader
from ingest.format_detection import detect_format
from ingest.pipeline import list_snapshot_files, run_snapshot
from ingest.record_extractor import extract_record
from store.run_stats import format_stats_report

__all__ = [
    "ArchiveCorruptError",
    "CanonicalRecord",
    "FormatTag",
    "RunOptions",
    "RunResult",
    "RunState",
    "RunStats",
    "SnapshotConfig",
    "SnapshotConfigError",
    "SnapshotFile",
    "SnapshotInputError",
    "SnapshotOutputError",
    "SnapshotToolError",
    "detect_format",
    "extract_record",
    "format_stats_report",
    "list_snapshot_files",
    "open_archive_reader",
    "run_snapshot",
]
