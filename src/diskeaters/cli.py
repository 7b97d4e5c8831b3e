"""CLI interface for disk-eaters."""

from pathlib import Path
from typing import Optional

import typer
from pydantic import ValidationError
from rich.markup import escape

from diskeaters import __version__
from diskeaters.display import console, process_table, show_history
from diskeaters.exceptions import ProcessLocatorError, ReportError
from diskeaters.log import setup_logging
from diskeaters.models import (
    DEFAULT_LOG_DIR,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_ITEMS,
    DEFAULT_SCAN_DIR,
    ReportConfig,
)
from diskeaters.processes import find_processes_using_file

# Create Typer app
app = typer.Typer(
    name="disk-eaters",
    help="Find the largest directories and files and track how fast they grow",
    add_completion=False,
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"disk-eaters version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log skipped paths and progress."),
) -> None:
    """disk-eaters - watch what is eating your disk."""
    setup_logging(verbose)


@app.command()
def scan(
    scan_dir: Path = typer.Option(
        Path(DEFAULT_SCAN_DIR),
        "--dir",
        "-dir",
        envvar="DISK_EATERS_DIR",
        help="Directory to scan.",
    ),
    log_dir: Path = typer.Option(
        Path(DEFAULT_LOG_DIR),
        "--log",
        "-log",
        envvar="DISK_EATERS_LOG_DIR",
        help="Directory for snapshots and daily reports.",
    ),
    max_items: int = typer.Option(
        DEFAULT_MAX_ITEMS,
        "--max",
        "-max",
        min=1,
        envvar="DISK_EATERS_MAX",
        help="Number of items to show per section.",
    ),
    processes: bool = typer.Option(
        True,
        "--processes/--no-processes",
        help="Show processes using the largest and fastest growing files.",
    ),
    depth: int = typer.Option(
        DEFAULT_MAX_DEPTH, "--depth", min=0, help="Directory levels that get their own entry."
    ),
    workers: Optional[int] = typer.Option(
        None, "--workers", min=1, help="Threads used to measure directories."
    ),
) -> None:
    """Scan a directory and write today's report."""
    try:
        config = ReportConfig(
            scan_dir=scan_dir,
            log_dir=log_dir,
            max_items=max_items,
            show_processes=processes,
            max_depth=depth,
            max_workers=workers,
        )
    except ValidationError as e:
        console.print(f"[red]Invalid configuration: {escape(str(e))}[/red]")
        raise typer.Exit(2)

    from diskeaters.report import run_report

    try:
        run_report(config)
    except ReportError as e:
        console.print(f"[red]Error: {escape(str(e))}[/red]")
        raise typer.Exit(1)


@app.command(name="processes")
def show_processes(
    file: Path = typer.Argument(..., help="File to look up"),
) -> None:
    """Show processes that currently have a file open."""
    try:
        found = find_processes_using_file(str(file))
    except ProcessLocatorError as e:
        console.print(f"[red]Error finding processes: {escape(str(e))}[/red]")
        raise typer.Exit(1)

    if not found:
        console.print(f"[yellow]No processes currently using {escape(str(file))}[/yellow]")
        return

    console.print(f"[bold]Processes using {escape(str(file))}[/bold]")
    console.print(process_table(found))


@app.command()
def history(
    log_dir: Path = typer.Option(
        Path(DEFAULT_LOG_DIR),
        "--log",
        "-log",
        envvar="DISK_EATERS_LOG_DIR",
        help="Directory for snapshots and daily reports.",
    ),
) -> None:
    """List saved daily reports."""
    history_dir = ReportConfig(log_dir=log_dir).history_dir
    reports = sorted(history_dir.glob("disk_eaters_*.log")) if history_dir.is_dir() else []
    show_history(reports)


if __name__ == "__main__":
    app()
