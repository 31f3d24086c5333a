"""Input discovery for snapshot runs.

This module walks an input file or directory and classifies every
regular file it finds, in a deterministic discovery order.
"""

from __future__ import annotations

from pathlib import Path

from core.errors import SnapshotInputError
from core.types import SnapshotFile
from ingest.format_detection import detect_format


def discover_snapshot_files(input_path: Path) -> list[SnapshotFile]:
    """Discover snapshot files under a path.

    Args:
        input_path: Snapshot file or directory, scanned recursively.

    Returns:
        Classified files sorted by path, including unrecognized ones.

    Raises:
        SnapshotInputError: If the path is missing or cannot be listed.
    """
    source_path = input_path.expanduser()
    if not source_path.exists():
        raise SnapshotInputError(
            f"Failed to read input at {source_path}: path does not exist. "
            "Provide an existing snapshot file or directory with --input."
        )
    if source_path.is_file():
        return [_classify_file(source_path)]
    try:
        file_paths = sorted(path for path in source_path.rglob("*") if path.is_file())
    except OSError as error:
        raise SnapshotInputError(
            f"Failed to scan input directory {source_path}: {error}. "
            "Check directory permissions and retry."
        ) from error
    return [_classify_file(file_path) for file_path in file_paths]


def _classify_file(file_path: Path) -> SnapshotFile:
    """Build a snapshot file descriptor.

    Raises:
        SnapshotInputError: If the file cannot be stat'ed.
    """
    try:
        size_bytes = file_path.stat().st_size
    except OSError as error:
        raise SnapshotInputError(
            f"Failed to read input file {file_path}: {error}. "
            "Check file permissions and retry."
        ) from error
    return SnapshotFile(
        path=file_path,
        format_tag=detect_format(file_path),
        size_bytes=size_bytes,
    )
