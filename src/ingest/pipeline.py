"""Run orchestration for snapshot passes.

This module drives one deterministic pass over all discovered files,
wiring format detection, archive readers, and record extraction into
the stats aggregator, the output combiner, and the DOI printer.
"""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Protocol, Sequence

from core.config import SnapshotConfig
from core.errors import ArchiveCorruptError, SnapshotOutputError, SnapshotToolError
from core.logging_config import get_logger
from core.types import (
    CanonicalRecord,
    DecodeFailure,
    FormatTag,
    RunOptions,
    RunResult,
    RunState,
    RunStats,
    SnapshotFile,
)
from ingest.archive_reader import open_archive_reader
from ingest.input_scanner import discover_snapshot_files
from ingest.record_extractor import extract_record
from store.doi_printer import DoiPrinter
from store.output_combiner import OutputCombiner
from store.run_stats import StatsAggregator

_LOGGER = get_logger(__name__)

StateListener = Callable[[RunState], None]


class RecordSink(Protocol):
    """Consumer of canonical records in delivery order."""

    def write(self, record: CanonicalRecord) -> None: ...


@dataclass
class _ProgressLogger:
    """Emit a progress event every ``interval`` records."""

    interval: int
    records_seen: int = 0

    def write(self, record: CanonicalRecord) -> None:
        self.records_seen += 1
        if self.records_seen % self.interval == 0:
            _LOGGER.info("records_progress", records_read=self.records_seen)


class SnapshotRunRunner:
    """Stateful runner for one pass over a snapshot input path."""

    def __init__(self, options: RunOptions, config: SnapshotConfig) -> None:
        self._options = options
        self._config = config
        self._aggregator = StatsAggregator()
        self._combiner: OutputCombiner | None = None
        self._doi_printer = DoiPrinter() if options.print_dois else None
        self.state = RunState.IDLE

    def run(self) -> RunResult:
        """Execute the pass and return the final result.

        Raises:
            SnapshotInputError: If the input path is missing or unreadable.
            SnapshotOutputError: If the output path cannot be written.
        """
        try:
            self._transition(RunState.SCANNING)
            files = discover_snapshot_files(self._options.input_path)
            if self._needs_records():
                self._combiner = self._open_combiner()
                interrupted = self._process_files(files)
            else:
                interrupted = False
            self._transition(RunState.FINALIZING)
            output_path = self._finalize_output(interrupted)
        except BaseException:
            if self._combiner is not None:
                self._combiner.abort()
            self._transition(RunState.FAILED)
            raise
        stats = self._aggregator.snapshot()
        self._transition(RunState.DONE)
        _log_run_completion(self._options, stats, output_path, interrupted)
        return RunResult(
            state=self.state,
            files=tuple(files),
            stats=stats,
            output_path=output_path,
            interrupted=interrupted,
        )

    def _needs_records(self) -> bool:
        options = self._options
        return options.stats or options.output_path is not None or options.print_dois

    def _open_combiner(self) -> OutputCombiner | None:
        output_path = self._options.output_path
        if output_path is None:
            return None
        _validate_output_path(self._options.input_path, output_path)
        combiner = OutputCombiner(output_path, self._config.compression_level)
        combiner.open()
        return combiner

    def _process_files(self, files: Sequence[SnapshotFile]) -> bool:
        """Stream all files, returning True when interrupted."""
        workers = self._options.workers
        if workers > 1 and self._combiner is None and self._doi_printer is None:
            return self._process_files_parallel(files, workers)
        if workers > 1:
            _LOGGER.warning(
                "parallel_disabled",
                workers=workers,
                reason="ordered output requested",
            )
        return self._process_files_sequential(files)

    def _process_files_sequential(self, files: Sequence[SnapshotFile]) -> bool:
        sinks: list[RecordSink] = [_ProgressLogger(self._config.progress_interval)]
        if self._combiner is not None:
            sinks.append(self._combiner)
        if self._doi_printer is not None:
            sinks.append(self._doi_printer)
        for file_index, snapshot_file in enumerate(files):
            try:
                partial_stats = stream_snapshot_file(
                    snapshot_file, self._config, sinks, self._transition
                )
            except KeyboardInterrupt:
                _log_interruption(snapshot_file, completed_files=file_index)
                return True
            self._aggregator.merge(partial_stats)
        return False

    def _process_files_parallel(self, files: Sequence[SnapshotFile], workers: int) -> bool:
        """Stream files on worker threads, merging stats in discovery order."""
        self._transition(RunState.STREAMING)
        executor = ThreadPoolExecutor(max_workers=workers)
        futures: list[Future[RunStats]] = [
            executor.submit(stream_snapshot_file, snapshot_file, self._config, (), None)
            for snapshot_file in files
        ]
        merged_count = 0
        try:
            for future in futures:
                self._aggregator.merge(future.result())
                merged_count += 1
        except KeyboardInterrupt:
            executor.shutdown(wait=True, cancel_futures=True)
            for future in futures[merged_count:]:
                if future.done() and not future.cancelled() and future.exception() is None:
                    self._aggregator.merge(future.result())
            _log_interruption(files[merged_count], completed_files=merged_count)
            return True
        finally:
            executor.shutdown(wait=True, cancel_futures=True)
        self._transition(RunState.CLOSING)
        return False

    def _finalize_output(self, interrupted: bool) -> Path | None:
        if self._combiner is None:
            return None
        if interrupted:
            self._combiner.abort()
            return None
        return self._combiner.finalize()

    def _transition(self, state: RunState) -> None:
        self.state = state
        _LOGGER.debug("run_state_changed", state=state.value)


def stream_snapshot_file(
    snapshot_file: SnapshotFile,
    config: SnapshotConfig,
    sinks: Sequence[RecordSink],
    on_state: StateListener | None,
) -> RunStats:
    """Stream one file's records into the sinks.

    Archive corruption and record decode failures are recovered here and
    only show up in the returned counters.

    Args:
        snapshot_file: Classified input file.
        config: Runtime configuration.
        sinks: Ordered record consumers.
        on_state: Optional listener for per-file state changes.

    Returns:
        Private stats for this file, to be merged by the caller.
    """
    notify = on_state if on_state is not None else _ignore_state
    aggregator = StatsAggregator()
    notify(RunState.DETECTING)
    source_format = snapshot_file.format_tag
    if source_format == FormatTag.UNRECOGNIZED:
        aggregator.record_file_skipped()
        _LOGGER.info("file_skipped", path=str(snapshot_file.path))
        return aggregator.stats
    notify(RunState.OPENING)
    try:
        reader = open_archive_reader(snapshot_file, config)
    except ArchiveCorruptError as error:
        aggregator.record_file_failed()
        _log_corrupt_archive(snapshot_file, error)
        return aggregator.stats
    notify(RunState.STREAMING)
    try:
        for raw_page in reader:
            result = extract_record(raw_page, source_format)
            if isinstance(result, DecodeFailure):
                aggregator.record_failures()
                _LOGGER.debug(
                    "record_decode_failed", source_uri=result.source_uri, reason=result.reason
                )
                continue
            aggregator.observe(result)
            for sink in sinks:
                sink.write(result)
    except ArchiveCorruptError as error:
        aggregator.record_file_failed()
        _log_corrupt_archive(snapshot_file, error)
    else:
        aggregator.record_file_processed()
    finally:
        notify(RunState.CLOSING)
        aggregator.record_failures(reader.entry_failures)
        reader.close()
    _LOGGER.info(
        "file_completed",
        path=str(snapshot_file.path),
        format=source_format.value,
        records=aggregator.stats.total_records,
        records_failed=aggregator.stats.records_failed,
    )
    return aggregator.stats


def run_snapshot(options: RunOptions, config: SnapshotConfig) -> RunResult:
    """Run one pass over the snapshot input.

    Args:
        options: Requested operations.
        config: Runtime configuration.

    Returns:
        Final run result.

    Raises:
        SnapshotToolError: On fatal input or output path errors.
    """
    runner = SnapshotRunRunner(options, config)
    return runner.run()


def list_snapshot_files(input_path: Path) -> list[SnapshotFile]:
    """Discover and classify input files without extracting records.

    Raises:
        SnapshotInputError: If the input path is missing or unreadable.
    """
    return discover_snapshot_files(input_path)


def _validate_output_path(input_path: Path, output_path: Path) -> None:
    """Reject output locations that cannot hold the combined archive.

    Raises:
        SnapshotOutputError: If the output is a directory or inside the input directory.
    """
    resolved_output = output_path.expanduser().resolve()
    if resolved_output.is_dir():
        raise SnapshotOutputError(
            f"Output path {output_path} is a directory. "
            "Pass a file name ending in .jsonl.gz to --out."
        )
    resolved_input = input_path.expanduser().resolve()
    if resolved_input.is_dir() and resolved_output.is_relative_to(resolved_input):
        raise SnapshotOutputError(
            f"Output file {output_path} can't be in the input directory {input_path}. "
            "Write the combined archive outside the input tree."
        )


def _ignore_state(state: RunState) -> None:
    return None


def _log_corrupt_archive(snapshot_file: SnapshotFile, error: SnapshotToolError) -> None:
    _LOGGER.warning(
        "archive_corrupt",
        path=str(snapshot_file.path),
        format=snapshot_file.format_tag.value,
        error=str(error),
    )


def _log_interruption(snapshot_file: SnapshotFile, completed_files: int) -> None:
    _LOGGER.warning(
        "run_interrupted",
        path=str(snapshot_file.path),
        completed_files=completed_files,
    )


def _log_run_completion(
    options: RunOptions,
    stats: RunStats,
    output_path: Path | None,
    interrupted: bool,
) -> None:
    """Log run completion with contextual metadata."""
    _LOGGER.info(
        "run_completed",
        input_path=str(options.input_path),
        output_path=str(output_path) if output_path is not None else None,
        total_records=stats.total_records,
        files_processed=stats.files_processed,
        files_skipped=stats.files_skipped,
        files_failed=stats.files_failed,
        records_failed=stats.records_failed,
        interrupted=interrupted,
    )
