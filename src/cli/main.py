"""Snapshot tool CLI entry points.
This module maps argparse flags onto one orchestrated snapshot run.
Listing, stats, DOI printing, and combining may be requested together.
"""

from __future__ import annotations

import argparse
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence

from core.config import SnapshotConfig
from core.constants import (
    EXIT_CODE_FATAL,
    EXIT_CODE_INTERRUPTED,
    EXIT_CODE_OK,
    SKIPPED_FORMAT_LABEL,
    TOOL_VERSION,
)
from core.errors import SnapshotInputError, SnapshotToolError
from core.logging_config import configure_logging
from core.types import FormatTag, RunOptions, SnapshotFile
from ingest.pipeline import list_snapshot_files, run_snapshot
from store.run_stats import format_stats_report


def build_parser() -> argparse.ArgumentParser:
    """Build the top-level CLI parser.

    Returns:
        Configured argument parser.
    """
    parser = argparse.ArgumentParser(
        prog="pardalotus-snapshot",
        description="Pardalotus Snapshot Tool",
    )
    parser.add_argument("--version", action="store_true", help="Show version")
    parser.add_argument(
        "--input",
        help="Input snapshot file or directory, scanned recursively",
    )
    parser.add_argument(
        "--list-input-files",
        "--lit-input-files",
        dest="list_input_files",
        action="store_true",
        help="List all snapshot files found in the input with their detected format",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Report record counts, failure counts, and JSON and DOI size statistics",
    )
    parser.add_argument(
        "--print-dois",
        action="store_true",
        help="Print the DOI of every record to STDOUT",
    )
    parser.add_argument(
        "-o",
        "--out",
        "--output-file",
        dest="out",
        help="Combine all inputs into this .jsonl.gz file",
    )
    parser.add_argument(
        "--workers",
        type=int,
        help="Parallel file workers for stats-only runs (SNAPSHOT_TOOL_WORKERS)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Send progress messages to STDERR",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the snapshot tool CLI.

    Args:
        argv: Optional argument vector.

    Returns:
        Process exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.verbose)
    if args.workers is not None and args.workers < 1:
        parser.error("--workers must be >= 1")
    try:
        return _run_command(args)
    except SnapshotToolError as error:
        print(f"Error: {error}", file=sys.stderr)
        return EXIT_CODE_FATAL
    except KeyboardInterrupt:
        print("Interrupted.", file=sys.stderr)
        return EXIT_CODE_INTERRUPTED


def _run_command(args: argparse.Namespace) -> int:
    """Dispatch requested operations in a fixed order.

    Args:
        args: Parsed CLI args.

    Returns:
        Exit code.
    """
    if args.version:
        print(f"Version {TOOL_VERSION}")
    needs_records = args.stats or args.print_dois or args.out is not None
    if not args.list_input_files and not needs_records:
        return EXIT_CODE_OK
    input_path = _expect_input_path(args.input)
    if args.list_input_files:
        _print_input_files(list_snapshot_files(input_path))
    if not needs_records:
        return EXIT_CODE_OK
    config = _build_config(args.workers)
    options = RunOptions(
        input_path=input_path,
        output_path=Path(args.out).expanduser() if args.out else None,
        stats=args.stats,
        print_dois=args.print_dois,
        workers=config.workers,
    )
    result = run_snapshot(options, config)
    if args.stats and result.stats is not None:
        print(format_stats_report(result.stats))
    if result.interrupted:
        return EXIT_CODE_INTERRUPTED
    return EXIT_CODE_OK


def _expect_input_path(raw_input: str | None) -> Path:
    """Return the input path or fail when none was supplied.

    Raises:
        SnapshotInputError: If --input is missing.
    """
    if not raw_input:
        raise SnapshotInputError("Please supply --input with a snapshot file or directory.")
    return Path(raw_input).expanduser()


def _build_config(workers: int | None) -> SnapshotConfig:
    """Build runtime config with optional worker override."""
    config = SnapshotConfig.from_env()
    if workers is not None:
        config = replace(config, workers=workers)
    return config


def _print_input_files(files: Sequence[SnapshotFile]) -> None:
    """Print one ``<format>\\t<path>`` row per discovered file."""
    for snapshot_file in files:
        label = snapshot_file.format_tag.value
        if snapshot_file.format_tag == FormatTag.UNRECOGNIZED:
            label = SKIPPED_FORMAT_LABEL
        print(f"{label}\t{snapshot_file.path}")
