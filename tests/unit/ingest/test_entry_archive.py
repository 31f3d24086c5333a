"""Unit tests for the entry-oriented archive reader."""

from __future__ import annotations

import hashlib
import json
import tarfile
from pathlib import Path

import pytest

from core.config import SnapshotConfig
from core.errors import ArchiveCorruptError
from core.types import RawPage
from ingest.entry_archive import EntryArchiveReader
from ingest.input_scanner import discover_snapshot_files
from ingest.pipeline import stream_snapshot_file
from tests.archive_builders import datacite_record, json_entries, write_entry_archive


def _read_all(path: Path) -> tuple[list[RawPage], int]:
    snapshot_file = discover_snapshot_files(path)[0]
    reader = EntryArchiveReader(snapshot_file, SnapshotConfig())
    with reader:
        raw_pages = list(reader)
    return raw_pages, reader.entry_failures


def test_entry_reader_yields_one_page_per_json_entry(tmp_path: Path) -> None:
    """Each regular entry should become one raw page, in archive order."""
    records = [datacite_record(index) for index in range(5)]
    path = write_entry_archive(tmp_path / "datacite.tgz", json_entries(records))

    raw_pages, failures = _read_all(path)

    assert [json.loads(page.content)["doi"] for page in raw_pages] == [
        record["doi"] for record in records
    ]
    assert failures == 0


def test_entry_reader_splits_jsonl_entries_by_line(tmp_path: Path) -> None:
    """DataCite ``.jsonl`` entries hold one record per line."""
    body = "\n".join(json.dumps(datacite_record(index)) for index in range(3)) + "\n\n"
    path = write_entry_archive(
        tmp_path / "datacite.tar.gz",
        [("dois/updated_2023-01/part_0001.jsonl", body.encode("utf-8"))],
    )

    raw_pages, _ = _read_all(path)

    assert len(raw_pages) == 3
    assert raw_pages[0].source_uri.endswith("part_0001.jsonl:1")


def test_entry_reader_skips_directories(tmp_path: Path) -> None:
    """Directory entries are not records and not failures."""
    path = tmp_path / "datacite.tgz"
    with tarfile.open(path, mode="w:gz") as archive:
        directory = tarfile.TarInfo(name="records")
        directory.type = tarfile.DIRTYPE
        archive.addfile(directory)

    raw_pages, failures = _read_all(path)

    assert raw_pages == [] and failures == 0


def test_entry_reader_passes_invalid_json_through(tmp_path: Path) -> None:
    """Malformed entry content is left for the extractor to reject."""
    entries = json_entries([datacite_record(1)]) + [("records/bad.json", b"{not json")]
    path = write_entry_archive(tmp_path / "datacite.tgz", entries)

    raw_pages, failures = _read_all(path)

    assert len(raw_pages) == 2 and failures == 0


def test_entry_reader_raises_for_non_gzip(tmp_path: Path) -> None:
    """Unreadable outer compression should fail the whole file."""
    path = tmp_path / "broken.tgz"
    path.write_bytes(b"\x00" * 64 + b"garbage")

    with pytest.raises(ArchiveCorruptError):
        _read_all(path)


def _checksummed_records(count: int) -> list[dict[str, object]]:
    records: list[dict[str, object]] = []
    for index in range(count):
        record = datacite_record(index)
        record["checksum"] = hashlib.sha256(str(index).encode("utf-8")).hexdigest()
        records.append(record)
    return records


def test_truncated_archive_fails_file_and_keeps_earlier_records(tmp_path: Path) -> None:
    """A gzip stream cut mid-archive is corruption, not a shorter archive."""
    path = write_entry_archive(tmp_path / "datacite.tgz", json_entries(_checksummed_records(300)))
    data = path.read_bytes()
    path.write_bytes(data[: len(data) // 2])
    snapshot_file = discover_snapshot_files(path)[0]

    stats = stream_snapshot_file(snapshot_file, SnapshotConfig(), (), None)

    assert stats.files_failed == 1
    assert stats.files_processed == 0
    assert 0 < stats.total_records < 300


def test_truncated_archive_raises_after_yielding_pages(tmp_path: Path) -> None:
    """Pages read before the cut are delivered before the reader fails."""
    path = write_entry_archive(tmp_path / "datacite.tgz", json_entries(_checksummed_records(300)))
    data = path.read_bytes()
    path.write_bytes(data[: len(data) // 2])
    reader = EntryArchiveReader(discover_snapshot_files(path)[0], SnapshotConfig())
    emitted: list[RawPage] = []

    with pytest.raises(ArchiveCorruptError):
        for raw_page in reader:
            emitted.append(raw_page)
    reader.close()

    assert 0 < len(emitted) < 300


def test_damaged_gzip_stream_fails_file(tmp_path: Path) -> None:
    """Bytes flipped in the middle of the stream fail the whole file."""
    path = write_entry_archive(tmp_path / "datacite.tgz", json_entries(_checksummed_records(300)))
    data = bytearray(path.read_bytes())
    middle = len(data) // 2
    for offset in range(middle, middle + 40):
        data[offset] ^= 0xFF
    path.write_bytes(bytes(data))
    snapshot_file = discover_snapshot_files(path)[0]

    stats = stream_snapshot_file(snapshot_file, SnapshotConfig(), (), None)

    assert stats.files_failed == 1
    assert stats.files_processed == 0


def test_unreadable_entry_is_counted_and_skipped(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """An entry whose data cannot be extracted counts one failure; neighbors survive."""
    entries = json_entries([datacite_record(1)])
    entries.append(("records/unreadable.json", json.dumps(datacite_record(2)).encode("utf-8")))
    entries.extend(json_entries([datacite_record(3)]))
    path = write_entry_archive(tmp_path / "datacite.tgz", entries)
    original_extractfile = tarfile.TarFile.extractfile

    def _extractfile(archive: tarfile.TarFile, member: tarfile.TarInfo):
        if member.name == "records/unreadable.json":
            raise tarfile.ReadError("unexpected end of data")
        return original_extractfile(archive, member)

    monkeypatch.setattr(tarfile.TarFile, "extractfile", _extractfile)

    raw_pages, failures = _read_all(path)
    stats = stream_snapshot_file(discover_snapshot_files(path)[0], SnapshotConfig(), (), None)

    assert [json.loads(page.content)["doi"] for page in raw_pages] == [
        "10.5438/datacite.1",
        "10.5438/datacite.3",
    ]
    assert failures == 1
    assert stats.records_failed == 1
    assert stats.total_records == 2
    assert stats.files_processed == 1 and stats.files_failed == 0
