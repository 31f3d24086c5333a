"""Run statistics aggregation and reporting.

This module counts canonical records per source format and tracks the
payload and DOI size distributions without retaining record content.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from core.constants import IDENTIFIER_KIND_DOI, JSON_SIZE_BUCKET_CHARS
from core.types import CanonicalRecord, RunStats


@dataclass
class StatsAggregator:
    """Accumulate run statistics from a stream of canonical records."""

    stats: RunStats = field(default_factory=RunStats)

    def observe(self, record: CanonicalRecord) -> None:
        """Count one record exactly once."""
        stats = self.stats
        format_key = record.source_format.value
        stats.records_by_format[format_key] = stats.records_by_format.get(format_key, 0) + 1
        stats.total_records += 1
        json_chars = len(record.encoded)
        stats.total_json_chars += json_chars
        json_bucket = (json_chars // JSON_SIZE_BUCKET_CHARS) * JSON_SIZE_BUCKET_CHARS
        _increment(stats.json_chars_frequencies, json_bucket)
        if record.identifier_kind != IDENTIFIER_KIND_DOI:
            return
        doi = record.identifier
        doi_chars = len(doi)
        doi_bytes = len(doi.encode("utf-8", errors="surrogatepass"))
        stats.total_doi_chars += doi_chars
        stats.total_doi_bytes += doi_bytes
        _increment(stats.doi_chars_frequencies, doi_chars)
        _increment(stats.doi_bytes_frequencies, doi_bytes)
        if doi:
            stats.max_doi_codepoint = max(stats.max_doi_codepoint, max(map(ord, doi)))

    def record_file_processed(self) -> None:
        self.stats.files_processed += 1

    def record_file_skipped(self) -> None:
        self.stats.files_skipped += 1

    def record_file_failed(self) -> None:
        self.stats.files_failed += 1

    def record_failures(self, count: int = 1) -> None:
        self.stats.records_failed += count

    def merge(self, partial: RunStats) -> None:
        """Sum a worker's partial stats into this aggregator."""
        merge_run_stats(self.stats, partial)

    def snapshot(self) -> RunStats:
        """Return an independent copy of the current counters."""
        return copy_run_stats(self.stats)


def merge_run_stats(target: RunStats, partial: RunStats) -> None:
    """Add every counter of ``partial`` into ``target``.

    Args:
        target: Stats updated in place.
        partial: Stats from one completed file or worker.
    """
    for format_key, count in partial.records_by_format.items():
        target.records_by_format[format_key] = target.records_by_format.get(format_key, 0) + count
    target.total_records += partial.total_records
    target.files_processed += partial.files_processed
    target.files_skipped += partial.files_skipped
    target.files_failed += partial.files_failed
    target.records_failed += partial.records_failed
    target.total_json_chars += partial.total_json_chars
    target.total_doi_chars += partial.total_doi_chars
    target.total_doi_bytes += partial.total_doi_bytes
    target.max_doi_codepoint = max(target.max_doi_codepoint, partial.max_doi_codepoint)
    for target_map, partial_map in (
        (target.json_chars_frequencies, partial.json_chars_frequencies),
        (target.doi_chars_frequencies, partial.doi_chars_frequencies),
        (target.doi_bytes_frequencies, partial.doi_bytes_frequencies),
    ):
        for key, count in partial_map.items():
            target_map[key] = target_map.get(key, 0) + count


def copy_run_stats(stats: RunStats) -> RunStats:
    """Copy stats so later updates do not leak into the copy."""
    return replace(
        stats,
        records_by_format=dict(stats.records_by_format),
        json_chars_frequencies=dict(stats.json_chars_frequencies),
        doi_chars_frequencies=dict(stats.doi_chars_frequencies),
        doi_bytes_frequencies=dict(stats.doi_bytes_frequencies),
    )


def format_stats_report(stats: RunStats) -> str:
    """Render the printed statistics report.

    Args:
        stats: Final run statistics.

    Returns:
        Multi-line report text without a trailing newline.
    """
    count = stats.total_records
    lines = [f"Record count: {count}"]
    for format_key in sorted(stats.records_by_format):
        lines.append(f"Records ({format_key}): {stats.records_by_format[format_key]}")
    lines.extend(
        [
            f"Files processed: {stats.files_processed}",
            f"Files skipped: {stats.files_skipped}",
            f"Files failed: {stats.files_failed}",
            f"Records failed: {stats.records_failed}",
            "",
            "JSON:",
            f"Total JSON chars: {stats.total_json_chars}",
            f"Mean JSON chars: {_mean(stats.total_json_chars, count)}",
            f"Modal JSON chars: {_mode(stats.json_chars_frequencies)}",
            "",
            "DOIs:",
            f"Total DOI chars: {stats.total_doi_chars}",
            f"Mean DOI chars: {_mean(stats.total_doi_chars, count)}",
            f"Modal DOI chars: {_mode(stats.doi_chars_frequencies)}",
            "",
            f"Total DOI bytes: {stats.total_doi_bytes}",
            f"Mean DOI bytes: {_mean(stats.total_doi_bytes, count)}",
            f"Modal DOI bytes: {_mode(stats.doi_bytes_frequencies)}",
            f"Max Unicode code point: {_codepoint_label(stats.max_doi_codepoint)}",
            "",
            "Frequencies:",
            "JSON chars frequencies (bins of 1KiB):",
        ]
    )
    lines.extend(_frequency_rows(stats.json_chars_frequencies))
    lines.extend(["", "DOI chars frequencies:"])
    lines.extend(_frequency_rows(stats.doi_chars_frequencies))
    return "\n".join(lines)


def _increment(frequencies: dict[int, int], key: int) -> None:
    frequencies[key] = frequencies.get(key, 0) + 1


def _mean(total: int, count: int) -> float:
    if count == 0:
        return 0.0
    return round(total / count, 3)


def _mode(frequencies: dict[int, int]) -> int:
    """Most frequent key, smallest key on ties, 0 when empty."""
    if not frequencies:
        return 0
    return min(frequencies, key=lambda key: (-frequencies[key], key))


def _codepoint_label(codepoint: int) -> str:
    if codepoint == 0:
        return "- : 0"
    return f"{chr(codepoint)!r} : {codepoint}"


def _frequency_rows(frequencies: dict[int, int]) -> list[str]:
    return [f"{key},{frequencies[key]}" for key in sorted(frequencies)]
