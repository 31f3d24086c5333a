"""Snapshot tool exception hierarchy.

This module defines traceable domain errors with clear boundaries.
Fatal errors abort a run; archive errors are recovered per file.
"""

from __future__ import annotations


class SnapshotToolError(Exception):
    """Base exception for all snapshot tool failures."""


class SnapshotConfigError(SnapshotToolError):
    """Raised for invalid runtime configuration."""


class SnapshotInputError(SnapshotToolError):
    """Raised when the input path is missing or unreadable."""


class SnapshotOutputError(SnapshotToolError):
    """Raised when the combined output file cannot be written."""


class ArchiveCorruptError(SnapshotToolError):
    """Raised when a snapshot file's compression or framing is unreadable."""
