"""Archive reader capability and format dispatch.

Every snapshot format is read through the same open / next_raw_page /
close capability. The format tag is resolved once, when a reader is
created, so the rest of the pipeline never branches on format.
"""

from __future__ import annotations

from types import TracebackType
from typing import Iterator

from core.config import SnapshotConfig
from core.errors import ArchiveCorruptError
from core.types import FormatTag, RawPage, SnapshotFile


class ArchiveReader:
    """Lazy, forward-only reader of raw pages from one snapshot file.

    Subclasses implement ``_iter_raw_pages`` as a generator that owns its
    file handles, so closing the generator releases them. Each ``open``
    restarts the sequence from the beginning of the file.
    """

    def __init__(self, snapshot_file: SnapshotFile, config: SnapshotConfig) -> None:
        self.snapshot_file = snapshot_file
        self._config = config
        self._raw_pages: Iterator[RawPage] | None = None
        self.entry_failures = 0

    def open(self) -> None:
        """Start a fresh pass over the file."""
        self.close()
        self.entry_failures = 0
        self._raw_pages = self._iter_raw_pages()

    def next_raw_page(self) -> RawPage | None:
        """Return the next raw page, or None once the file is exhausted.

        Raises:
            ArchiveCorruptError: If compression or framing is unreadable.
        """
        if self._raw_pages is None:
            raise ArchiveCorruptError(
                f"Reader for {self.snapshot_file.path} is not open. "
                "Call open() before reading raw pages."
            )
        return next(self._raw_pages, None)

    def close(self) -> None:
        """Release file handles held by the current pass."""
        if self._raw_pages is None:
            return
        raw_pages = self._raw_pages
        self._raw_pages = None
        close_generator = getattr(raw_pages, "close", None)
        if close_generator is not None:
            close_generator()

    def __iter__(self) -> Iterator[RawPage]:
        while True:
            raw_page = self.next_raw_page()
            if raw_page is None:
                return
            yield raw_page

    def __enter__(self) -> "ArchiveReader":
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        self.close()

    def _iter_raw_pages(self) -> Iterator[RawPage]:
        raise NotImplementedError

    def _corrupt(self, detail: str, error: BaseException | None = None) -> ArchiveCorruptError:
        """Build a file-level corruption error with path context."""
        tag_value = self.snapshot_file.format_tag.value
        message = f"Corrupt {tag_value} archive {self.snapshot_file.path}: {detail}"
        if error is not None:
            message = f"{message} ({error})"
        return ArchiveCorruptError(message)


def open_archive_reader(snapshot_file: SnapshotFile, config: SnapshotConfig) -> ArchiveReader:
    """Create and open the reader matching a file's format tag.

    Args:
        snapshot_file: Classified input file.
        config: Runtime configuration.

    Returns:
        Opened archive reader.

    Raises:
        ArchiveCorruptError: If the format tag has no reader.
    """
    from ingest.entry_archive import EntryArchiveReader
    from ingest.normalized_archive import NormalizedArchiveReader
    from ingest.page_archive import PageArchiveReader

    reader_types: dict[FormatTag, type[ArchiveReader]] = {
        FormatTag.PAGE_ORIENTED: PageArchiveReader,
        FormatTag.ENTRY_ORIENTED: EntryArchiveReader,
        FormatTag.NORMALIZED: NormalizedArchiveReader,
    }
    reader_type = reader_types.get(snapshot_file.format_tag)
    if reader_type is None:
        raise ArchiveCorruptError(
            f"No archive reader for {snapshot_file.path} "
            f"with format '{snapshot_file.format_tag.value}'."
        )
    reader = reader_type(snapshot_file, config)
    reader.open()
    return reader
