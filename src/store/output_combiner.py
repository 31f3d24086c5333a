"""Combined normalized archive writer.

This module appends canonical records to one gzip-compressed JSONL file.
Records are written to ``<out>.incomplete`` and the file is renamed to
its final name only when the run finishes, so an interrupted or crashed
run never leaves a file that looks complete.
"""

from __future__ import annotations

import gzip
import json
from pathlib import Path
from typing import IO

from core.constants import INCOMPLETE_OUTPUT_SUFFIX
from core.errors import SnapshotOutputError
from core.logging_config import get_logger
from core.types import CanonicalRecord

_LOGGER = get_logger(__name__)


class OutputCombiner:
    """Single-writer sink for the combined ``.jsonl.gz`` archive."""

    def __init__(self, output_path: Path, compression_level: int) -> None:
        self.output_path = output_path
        self.incomplete_path = output_path.with_name(output_path.name + INCOMPLETE_OUTPUT_SUFFIX)
        self._compression_level = compression_level
        self._stream: IO[bytes] | None = None
        self._closed = False
        self.records_written = 0

    def open(self) -> None:
        """Create the in-progress output file.

        Raises:
            SnapshotOutputError: If the file cannot be created.
        """
        try:
            self.incomplete_path.parent.mkdir(parents=True, exist_ok=True)
            self._stream = gzip.open(
                self.incomplete_path, "wb", compresslevel=self._compression_level
            )
        except OSError as error:
            raise SnapshotOutputError(
                f"Failed to create output file {self.incomplete_path}: {error}. "
                "Choose a writable --out location."
            ) from error

    def write(self, record: CanonicalRecord) -> None:
        """Append one record payload as a JSON line.

        Raises:
            SnapshotOutputError: If the combiner is not open or writing fails.
        """
        if self._stream is None:
            raise SnapshotOutputError(
                f"Output {self.output_path} is not open for writing. "
                "Call open() before writing records."
            )
        try:
            line = (record.encoded + "\n").encode("utf-8")
        except UnicodeEncodeError:
            line = (json.dumps(record.payload, separators=(",", ":")) + "\n").encode("utf-8")
        try:
            self._stream.write(line)
        except OSError as error:
            raise SnapshotOutputError(
                f"Failed to write output file {self.incomplete_path}: {error}. "
                "Check free disk space and retry."
            ) from error
        self.records_written += 1

    def finalize(self) -> Path:
        """Flush the gzip trailer and move the file to its final name.

        Returns:
            Path of the finished archive.

        Raises:
            SnapshotOutputError: If already closed or the file cannot be finished.
        """
        if self._closed or self._stream is None:
            raise SnapshotOutputError(
                f"Output {self.output_path} was already finalized or never opened."
            )
        self._closed = True
        stream = self._stream
        self._stream = None
        try:
            stream.close()
            self.incomplete_path.replace(self.output_path)
        except OSError as error:
            raise SnapshotOutputError(
                f"Failed to finish output file {self.output_path}: {error}. "
                "Check free disk space and permissions."
            ) from error
        _LOGGER.info(
            "output_finalized",
            output_path=str(self.output_path),
            records_written=self.records_written,
        )
        return self.output_path

    def abort(self) -> None:
        """Close the stream and leave the output marked incomplete."""
        if self._closed:
            return
        self._closed = True
        stream = self._stream
        self._stream = None
        if stream is not None:
            try:
                stream.close()
            except OSError as error:
                _LOGGER.warning(
                    "output_close_failed",
                    output_path=str(self.incomplete_path),
                    error=str(error),
                )
        _LOGGER.warning(
            "output_incomplete",
            output_path=str(self.incomplete_path),
            records_written=self.records_written,
        )
