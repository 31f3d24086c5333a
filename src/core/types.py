"""Shared typed models.

This module defines the data models passed between the format detector,
archive readers, record extractor, and the stats and output consumers.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Mapping

from core.constants import DEFAULT_WORKERS


class FormatTag(str, Enum):
    """Snapshot file format detected from the file name suffix."""

    PAGE_ORIENTED = "page_oriented"
    ENTRY_ORIENTED = "entry_oriented"
    NORMALIZED = "normalized"
    UNRECOGNIZED = "unrecognized"


class RunState(str, Enum):
    """Run orchestrator lifecycle states."""

    IDLE = "idle"
    SCANNING = "scanning"
    DETECTING = "detecting"
    OPENING = "opening"
    STREAMING = "streaming"
    CLOSING = "closing"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class SnapshotFile:
    """Discovered input file.

    Attributes:
        path: Location on the local file system.
        format_tag: Format detected from the file name.
        size_bytes: File size at discovery time.
    """

    path: Path
    format_tag: FormatTag
    size_bytes: int


@dataclass(frozen=True)
class RawPage:
    """Undecoded record unit emitted by an archive reader.

    Exactly one of ``content`` and ``document`` is set: entry and line
    readers carry raw bytes, the page reader carries items it already
    parsed while decoding the whole page.

    Attributes:
        source_uri: File path plus entry name or line number.
        content: Raw JSON bytes for one record.
        document: Pre-parsed JSON value for one page item.
    """

    source_uri: str
    content: bytes | None = None
    document: Any = None


@dataclass(frozen=True)
class CanonicalRecord:
    """Format-independent metadata record.

    Attributes:
        identifier: DOI when present, otherwise a content hash.
        identifier_kind: ``doi`` or ``content_hash``.
        source_format: Format of the archive the record came from.
        payload: Original JSON object, untransformed.
        encoded: Compact JSON serialization of ``payload``.
    """

    identifier: str
    identifier_kind: str
    source_format: FormatTag
    payload: Mapping[str, Any]
    encoded: str


@dataclass(frozen=True)
class DecodeFailure:
    """Record-level decode failure returned instead of a record."""

    source_uri: str
    reason: str


@dataclass
class RunStats:
    """Per-run counters, only ever incremented while a run is active.

    Attributes:
        records_by_format: Records seen per source format tag value.
        total_records: Records seen across all formats.
        files_processed: Files streamed to completion.
        files_skipped: Files with an unrecognized suffix.
        files_failed: Files abandoned on archive-level corruption.
        records_failed: Entries, items, or lines that failed to decode.
        total_json_chars: Summed length of encoded record payloads.
        json_chars_frequencies: Record count per 1 KiB payload size bucket.
        total_doi_chars: Summed DOI length in code points.
        total_doi_bytes: Summed DOI length in UTF-8 bytes.
        doi_chars_frequencies: Record count per DOI code point length.
        doi_bytes_frequencies: Record count per DOI byte length.
        max_doi_codepoint: Largest code point seen in any DOI.
    """

    records_by_format: dict[str, int] = field(default_factory=dict)
    total_records: int = 0
    files_processed: int = 0
    files_skipped: int = 0
    files_failed: int = 0
    records_failed: int = 0
    total_json_chars: int = 0
    json_chars_frequencies: dict[int, int] = field(default_factory=dict)
    total_doi_chars: int = 0
    total_doi_bytes: int = 0
    doi_chars_frequencies: dict[int, int] = field(default_factory=dict)
    doi_bytes_frequencies: dict[int, int] = field(default_factory=dict)
    max_doi_codepoint: int = 0


@dataclass(frozen=True)
class RunOptions:
    """Requested operations for one run.

    Attributes:
        input_path: Snapshot file or directory to scan.
        output_path: Combined ``.jsonl.gz`` destination, if any.
        stats: Aggregate and report record statistics.
        list_input_files: Only list discovered files.
        print_dois: Print the DOI of each record.
        workers: Parallel file workers for stats-only runs.
    """

    input_path: Path
    output_path: Path | None = None
    stats: bool = False
    list_input_files: bool = False
    print_dois: bool = False
    workers: int = DEFAULT_WORKERS


@dataclass(frozen=True)
class RunResult:
    """Outcome of one run.

    Attributes:
        state: Terminal run state.
        files: Discovered files in discovery order.
        stats: Final statistics snapshot.
        output_path: Finished combined archive, if one was written.
        interrupted: True when the run stopped at a file boundary on interrupt.
    """

    state: RunState
    files: tuple[SnapshotFile, ...]
    stats: RunStats | None = None
    output_path: Path | None = None
    interrupted: bool = False
