"""Unit tests for the page-oriented archive reader."""

from __future__ import annotations

import gzip
import json
from pathlib import Path

import pytest

from core.config import SnapshotConfig
from core.errors import ArchiveCorruptError
from core.types import RawPage
from ingest.archive_reader import open_archive_reader
from ingest.input_scanner import discover_snapshot_files
from ingest.page_archive import PageArchiveReader
from tests.archive_builders import crossref_item, write_page_archive


def _read_all(path: Path, config: SnapshotConfig | None = None) -> list[RawPage]:
    snapshot_file = discover_snapshot_files(path)[0]
    with PageArchiveReader(snapshot_file, config or SnapshotConfig()) as reader:
        return list(reader)


def test_page_reader_yields_items_in_page_order(tmp_path: Path) -> None:
    """Items of every gzip member page should be emitted in order."""
    path = write_page_archive(
        tmp_path / "0.json.gz",
        [[crossref_item(1), crossref_item(2)], [crossref_item(3)]],
    )

    raw_pages = _read_all(path)

    assert [page.document["DOI"] for page in raw_pages] == [
        "10.5555/crossref.1",
        "10.5555/crossref.2",
        "10.5555/crossref.3",
    ]
    assert all(page.content is None for page in raw_pages)


def test_page_reader_handles_small_read_chunks(tmp_path: Path) -> None:
    """Member boundaries falling inside a read chunk should be honored."""
    path = write_page_archive(
        tmp_path / "0.json.gz",
        [[crossref_item(index) for index in range(20)] for _ in range(3)],
    )

    raw_pages = _read_all(path, SnapshotConfig(read_chunk_bytes=7))

    assert len(raw_pages) == 60


def test_page_reader_accepts_api_message_shape(tmp_path: Path) -> None:
    """Crossref REST responses wrap items in a message object."""
    path = tmp_path / "api.json.gz"
    payload = {"status": "ok", "message": {"items": [crossref_item(7)]}}
    path.write_bytes(gzip.compress(json.dumps(payload).encode("utf-8")))

    raw_pages = _read_all(path)

    assert raw_pages[0].document["DOI"] == "10.5555/crossref.7"


def test_page_reader_raises_for_missing_items(tmp_path: Path) -> None:
    """A page without an items list is archive-level corruption."""
    path = tmp_path / "bad.json.gz"
    path.write_bytes(gzip.compress(b'{"records": []}'))

    with pytest.raises(ArchiveCorruptError):
        _read_all(path)


def test_page_reader_raises_for_non_gzip(tmp_path: Path) -> None:
    """Undecompressible content should fail the whole file."""
    path = tmp_path / "bad.json.gz"
    path.write_bytes(b"not gzip at all")

    with pytest.raises(ArchiveCorruptError):
        _read_all(path)


def test_page_reader_keeps_pages_before_corruption(tmp_path: Path) -> None:
    """Items of complete pages are emitted before a broken page fails the file."""
    path = write_page_archive(tmp_path / "0.json.gz", [[crossref_item(1), crossref_item(2)]])
    truncated_page = gzip.compress(json.dumps({"items": [crossref_item(3)]}).encode("utf-8"))
    with path.open("ab") as handle:
        handle.write(truncated_page[: len(truncated_page) // 2])
    snapshot_file = discover_snapshot_files(path)[0]
    reader = open_archive_reader(snapshot_file, SnapshotConfig())
    emitted: list[RawPage] = []

    with pytest.raises(ArchiveCorruptError):
        for raw_page in reader:
            emitted.append(raw_page)
    reader.close()

    assert len(emitted) == 2


def test_page_reader_is_restartable_per_open(tmp_path: Path) -> None:
    """Opening again should restart from the first item."""
    path = write_page_archive(tmp_path / "0.json.gz", [[crossref_item(1), crossref_item(2)]])
    reader = open_archive_reader(discover_snapshot_files(path)[0], SnapshotConfig())

    first = reader.next_raw_page()
    reader.open()
    restarted = reader.next_raw_page()
    reader.close()

    assert first is not None and restarted is not None
    assert first.document == restarted.document


def test_page_reader_raises_for_nesting_beyond_recursion_limit(tmp_path: Path) -> None:
    """A page too deeply nested to decode fails the file instead of the run."""
    path = tmp_path / "deep.json.gz"
    path.write_bytes(gzip.compress(b"[" * 200000 + b"]" * 200000))

    with pytest.raises(ArchiveCorruptError):
        _read_all(path)


def test_page_reader_ignores_trailing_zero_padding(tmp_path: Path) -> None:
    """Zero bytes after the last member are padding, not a broken page."""
    path = write_page_archive(
        tmp_path / "0.json.gz", [[crossref_item(1)], [crossref_item(2)]]
    )
    with path.open("ab") as handle:
        handle.write(b"\x00" * 1024)

    raw_pages = _read_all(path, SnapshotConfig(read_chunk_bytes=100))

    assert [page.document["DOI"] for page in raw_pages] == [
        "10.5555/crossref.1",
        "10.5555/crossref.2",
    ]


def test_page_reader_treats_zero_only_file_as_empty(tmp_path: Path) -> None:
    """A file holding only padding has no page and is corrupt."""
    path = tmp_path / "zeros.json.gz"
    path.write_bytes(b"\x00" * 512)

    with pytest.raises(ArchiveCorruptError):
        _read_all(path)
