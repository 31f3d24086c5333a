"""Entry-oriented snapshot reader.

DataCite snapshots ship as one gzip tar whose entries each hold JSON
records. The archive is read in stream mode so only one entry's bytes
are held in memory at a time. The gzip layer is read through
``GzipFile`` and drained after the tar end marker, so a truncated or
damaged stream always fails the file instead of ending it early.
"""

from __future__ import annotations

import gzip
import tarfile
import zlib
from typing import Iterator

from core.constants import NEWLINE_DELIMITED_ENTRY_SUFFIX
from core.logging_config import get_logger
from core.types import RawPage
from ingest.archive_reader import ArchiveReader

_LOGGER = get_logger(__name__)
_FRAMING_ERRORS = (tarfile.TarError, zlib.error, EOFError, OSError)


class EntryArchiveReader(ArchiveReader):
    """Reader for entry-oriented ``.tgz`` / ``.tar.gz`` files."""

    def _iter_raw_pages(self) -> Iterator[RawPage]:
        path = self.snapshot_file.path
        try:
            gzip_stream = gzip.open(path, "rb")
        except OSError as error:
            raise self._corrupt("file cannot be opened", error) from error
        with gzip_stream:
            try:
                archive = tarfile.open(fileobj=gzip_stream, mode="r|")
            except _FRAMING_ERRORS as error:
                raise self._corrupt("tar archive cannot be opened", error) from error
            with archive:
                yield from self._iter_members(archive)
            self._drain_stream(gzip_stream)

    def _iter_members(self, archive: tarfile.TarFile) -> Iterator[RawPage]:
        path = self.snapshot_file.path
        while True:
            try:
                member = archive.next()
            except _FRAMING_ERRORS as error:
                raise self._corrupt("tar framing is unreadable", error) from error
            if member is None:
                return
            if not member.isfile():
                continue
            entry_bytes = self._read_entry(archive, member)
            if entry_bytes is None:
                continue
            yield from _entry_raw_pages(f"{path}:{member.name}", member.name, entry_bytes)

    def _drain_stream(self, gzip_stream: gzip.GzipFile) -> None:
        """Read past the tar end marker so gzip truncation and CRC errors surface.

        Raises:
            ArchiveCorruptError: If the gzip stream is truncated or damaged.
        """
        try:
            while gzip_stream.read(self._config.read_chunk_bytes):
                pass
        except _FRAMING_ERRORS as error:
            raise self._corrupt("gzip stream is truncated or damaged", error) from error

    def _read_entry(self, archive: tarfile.TarFile, member: tarfile.TarInfo) -> bytes | None:
        """Read one entry's bytes, counting unreadable entries as failures."""
        try:
            entry_file = archive.extractfile(member)
            if entry_file is None:
                raise tarfile.ExtractError(f"entry {member.name} has no data")
            with entry_file:
                return entry_file.read()
        except (tarfile.ExtractError, tarfile.ReadError) as error:
            self.entry_failures += 1
            _LOGGER.warning(
                "entry_unreadable",
                path=str(self.snapshot_file.path),
                entry=member.name,
                error=str(error),
            )
            return None
        except _FRAMING_ERRORS as error:
            raise self._corrupt(f"entry {member.name} cannot be decompressed", error) from error


def _entry_raw_pages(source_uri: str, entry_name: str, entry_bytes: bytes) -> Iterator[RawPage]:
    """Split an entry into raw pages.

    ``.jsonl`` entries hold one record per line; any other entry holds
    exactly one JSON document.
    """
    if not entry_name.lower().endswith(NEWLINE_DELIMITED_ENTRY_SUFFIX):
        yield RawPage(source_uri=source_uri, content=entry_bytes)
        return
    for line_number, line in enumerate(entry_bytes.splitlines(), 1):
        if not line.strip():
            continue
        yield RawPage(source_uri=f"{source_uri}:{line_number}", content=line)
