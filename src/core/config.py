"""Runtime configuration model for the snapshot tool.

This module owns all environment variable parsing and validation.
Other modules consume a typed config object instead of raw env reads.
"""

from __future__ import annotations

from dataclasses import dataclass
import os

from core.constants import (
    DEFAULT_COMPRESSION_LEVEL,
    DEFAULT_PROGRESS_INTERVAL,
    DEFAULT_READ_CHUNK_BYTES,
    DEFAULT_WORKERS,
)
from core.errors import SnapshotConfigError


@dataclass(frozen=True)
class SnapshotConfig:
    """Validated runtime configuration.

    Attributes:
        progress_interval: Records between verbose progress events.
        compression_level: Gzip level used for combined output.
        workers: Parallel file workers for stats-only runs.
        read_chunk_bytes: Compressed bytes read per step from page files.
    """

    progress_interval: int = DEFAULT_PROGRESS_INTERVAL
    compression_level: int = DEFAULT_COMPRESSION_LEVEL
    workers: int = DEFAULT_WORKERS
    read_chunk_bytes: int = DEFAULT_READ_CHUNK_BYTES

    @classmethod
    def from_env(cls) -> "SnapshotConfig":
        """Build config from process environment variables.

        Returns:
            A validated config object.

        Raises:
            SnapshotConfigError: If environment values are invalid.
        """
        progress_interval = _parse_int_env(
            "SNAPSHOT_TOOL_PROGRESS_INTERVAL", DEFAULT_PROGRESS_INTERVAL, minimum=1
        )
        compression_level = _parse_int_env(
            "SNAPSHOT_TOOL_COMPRESSION_LEVEL", DEFAULT_COMPRESSION_LEVEL, minimum=1
        )
        if compression_level > 9:
            raise SnapshotConfigError(
                "Invalid SNAPSHOT_TOOL_COMPRESSION_LEVEL value: "
                f"expected 1-9, got {compression_level}. "
                "Set SNAPSHOT_TOOL_COMPRESSION_LEVEL to a gzip level."
            )
        workers = _parse_int_env("SNAPSHOT_TOOL_WORKERS", DEFAULT_WORKERS, minimum=1)
        read_chunk_bytes = _parse_int_env(
            "SNAPSHOT_TOOL_READ_CHUNK_BYTES", DEFAULT_READ_CHUNK_BYTES, minimum=1
        )
        return cls(
            progress_interval=progress_interval,
            compression_level=compression_level,
            workers=workers,
            read_chunk_bytes=read_chunk_bytes,
        )


def _parse_int_env(name: str, default: int, minimum: int) -> int:
    """Parse a bounded integer environment value.

    Args:
        name: Environment variable name.
        default: Value used when the variable is unset.
        minimum: Smallest accepted value.

    Returns:
        Parsed integer.

    Raises:
        SnapshotConfigError: If value is not an integer or below minimum.
    """
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        value = int(raw_value)
    except ValueError as error:
        raise SnapshotConfigError(
            f"Invalid {name} value: "
            f"expected integer, got '{raw_value}'. "
            f"Set {name} to a numeric value."
        ) from error
    if value < minimum:
        raise SnapshotConfigError(
            f"Invalid {name} value: expected >= {minimum}, got {value}. "
            f"Set {name} to a larger value."
        )
    return value
