"""Report orchestration for disk-eaters.

One run scans the configured directory, prints the largest directories and
files, compares them with the previous run and rotates the snapshots. Errors
inside a section are printed in place of that section and the run goes on;
only failing to set up the log directory or report file is fatal.
"""

import logging
from datetime import date
from typing import Optional

from rich.console import Console
from rich.markup import escape

from diskeaters.aggregator import find_largest_directories
from diskeaters.display import (
    ReportOutput,
    show_entries,
    show_file_processes,
    show_growth,
    show_header,
    show_report_title,
    show_section_error,
)
from diskeaters.exceptions import DiskEatersError, ProcessLocatorError, ReportError, SnapshotError
from diskeaters.file_scanner import find_largest_files
from diskeaters.growth import analyze_growth
from diskeaters.models import DiskEntry, ReportConfig, ReportSummary, ScanStats
from diskeaters.processes import find_processes_using_file
from diskeaters.snapshot import (
    SNAPSHOT_KINDS,
    SnapshotPaths,
    discard_current,
    rotate_snapshot,
    save_entries,
    snapshot_paths,
)

logger = logging.getLogger(__name__)

_KIND_TITLES = {"dirs": "DIRECTORIES", "files": "FILES"}
_KIND_ERRORS = {"dirs": "directory", "files": "file"}


def _section_error(out: ReportOutput, summary: ReportSummary, message: str) -> None:
    logger.warning(message)
    summary.errors.append(message)
    show_section_error(out, message)


def _show_processes(out: ReportOutput, title: str, entries: list[DiskEntry], grown: bool) -> None:
    out.print()
    show_header(out, title)
    for entry in entries:
        try:
            processes = find_processes_using_file(entry.path)
        except ProcessLocatorError as e:
            show_file_processes(out, entry, None, error=str(e), grown=grown)
        else:
            show_file_processes(out, entry, processes, grown=grown)


def _largest_directories_section(
    config: ReportConfig,
    out: ReportOutput,
    paths: SnapshotPaths,
    stats: ScanStats,
    summary: ReportSummary,
) -> None:
    show_header(out, f"TOP {config.max_items} LARGEST DIRECTORIES UNDER {config.scan_dir}")
    try:
        directories = find_largest_directories(
            config.scan_dir,
            config.max_items,
            max_depth=config.max_depth,
            max_workers=config.max_workers,
            stats=stats,
        )
        show_entries(out, directories)
        summary.directories = directories
        save_entries(directories, paths.current)
    except DiskEatersError as e:
        _section_error(out, summary, f"Error finding directories: {e}")
    out.print()


def _largest_files_section(
    config: ReportConfig,
    out: ReportOutput,
    paths: SnapshotPaths,
    stats: ScanStats,
    summary: ReportSummary,
) -> None:
    show_header(out, f"TOP {config.max_items} LARGEST FILES UNDER {config.scan_dir}")
    try:
        files = find_largest_files(config.scan_dir, config.max_items, stats=stats)
        show_entries(out, files)
        summary.files = files
        if config.show_processes and files:
            _show_processes(out, "PROCESSES USING LARGE FILES", files, grown=False)
        save_entries(files, paths.current)
    except DiskEatersError as e:
        _section_error(out, summary, f"Error finding files: {e}")
    out.print()


def _growth_section(
    config: ReportConfig,
    out: ReportOutput,
    paths: SnapshotPaths,
    summary: ReportSummary,
) -> None:
    kind = paths.kind
    show_header(
        out,
        f"TOP {config.max_items} FASTEST GROWING {_KIND_TITLES[kind]} UNDER {config.scan_dir}",
    )
    try:
        growth = analyze_growth(paths.current, paths.previous, config.max_items)
    except DiskEatersError as e:
        _section_error(out, summary, f"Error analyzing {_KIND_ERRORS[kind]} growth: {e}")
        out.print()
        return

    show_growth(out, growth)
    if kind == "dirs":
        summary.directory_growth = growth
    else:
        summary.file_growth = growth
        if config.show_processes and growth.entries:
            _show_processes(out, "PROCESSES USING FAST-GROWING FILES", growth.entries, grown=True)
    out.print()


def run_report(
    config: ReportConfig,
    terminal: Optional[Console] = None,
    today: Optional[date] = None,
) -> ReportSummary:
    """
    Run a full scan and write the daily report.

    Args:
        config: Report configuration
        terminal: Console for terminal output (default: the display console)
        today: Report date (default: today)

    Returns:
        ReportSummary with the entries shown and any section errors

    Raises:
        ReportError: If the log directories or the report file cannot be created
    """
    today = today or date.today()

    try:
        config.log_dir.mkdir(parents=True, exist_ok=True)
        config.history_dir.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise ReportError(f"Cannot create log directory {config.log_dir}: {e}") from e

    snapshots = [snapshot_paths(config.log_dir, kind) for kind in SNAPSHOT_KINDS]
    try:
        for paths in snapshots:
            discard_current(paths)
    except SnapshotError as e:
        raise ReportError(str(e)) from e

    report_path = config.report_file(today)
    try:
        report_file = open(report_path, "w", encoding="utf-8", errors="replace")
    except OSError as e:
        raise ReportError(f"Cannot create report file {report_path}: {e}") from e

    summary = ReportSummary(report_file=report_path)
    stats = ScanStats()
    dirs_paths, files_paths = snapshots

    with report_file:
        out = ReportOutput.to_file(report_file, terminal)
        show_report_title(out, today.isoformat(), config.scan_dir)

        _largest_directories_section(config, out, dirs_paths, stats, summary)
        _largest_files_section(config, out, files_paths, stats, summary)
        for paths in snapshots:
            _growth_section(config, out, paths, summary)

        for paths in snapshots:
            try:
                rotate_snapshot(paths)
            except SnapshotError as e:
                _section_error(out, summary, str(e))

        summary.skipped_paths = stats.skipped_paths
        show_header(out, "SUMMARY")
        out.print(f"Log saved to: {escape(str(report_path))}")
        if stats.skipped_paths:
            out.print(f"[dim]Skipped {stats.skipped_paths} unreadable paths.[/dim]")
        out.print("Run this program daily to track growth patterns.")

    logger.info("Report written to %s", report_path)
    return summary
