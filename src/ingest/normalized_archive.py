"""Normalized snapshot reader for ``.jsonl.gz`` files written by this tool."""

from __future__ import annotations

import gzip
import zlib
from typing import Iterator

from core.types import RawPage
from ingest.archive_reader import ArchiveReader


class NormalizedArchiveReader(ArchiveReader):
    """Reader yielding one raw page per non-blank line."""

    def _iter_raw_pages(self) -> Iterator[RawPage]:
        path = self.snapshot_file.path
        try:
            handle = gzip.open(path, "rb")
        except OSError as error:
            raise self._corrupt("file cannot be opened", error) from error
        with handle:
            line_number = 0
            while True:
                try:
                    line = handle.readline()
                except (OSError, EOFError, zlib.error) as error:
                    raise self._corrupt(
                        f"gzip stream unreadable after line {line_number}", error
                    ) from error
                if not line:
                    return
                line_number += 1
                if not line.strip():
                    continue
                yield RawPage(source_uri=f"{path}:{line_number}", content=line)
