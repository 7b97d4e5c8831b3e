"""Rich terminal display for disk-eaters.

Report sections are printed through a ReportOutput, which mirrors every line
to the terminal console and to the daily report file.
"""

from pathlib import Path
from typing import Iterable, Optional, TextIO

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from diskeaters.growth import NO_HISTORY_MESSAGE
from diskeaters.models import AccessMode, DiskEntry, GrowthReport, ProcessInfo

console = Console(highlight=False, soft_wrap=True)

HEADER_RULE = "=" * 50
REPORT_FILE_WIDTH = 200

_UNITS = [
    ("TB", 1024**4),
    ("GB", 1024**3),
    ("MB", 1024**2),
    ("KB", 1024),
]


def format_size(size_bytes: int) -> str:
    """Format bytes to human-readable string (binary units, 2 decimals)."""
    for unit, factor in _UNITS:
        if size_bytes >= factor:
            return f"{size_bytes / factor:.2f} {unit}"
    return f"{size_bytes} B"


def access_label(access: AccessMode) -> str:
    """Short label for an access mode."""
    labels = {
        AccessMode.READ: "r",
        AccessMode.WRITE: "w",
        AccessMode.READ_WRITE: "rw",
    }
    return labels.get(access, "?")


class ReportOutput:
    """Print to several consoles at once (terminal plus report file)."""

    def __init__(self, *consoles: Console):
        self.consoles = consoles

    @classmethod
    def to_file(cls, report_file: TextIO, terminal: Optional[Console] = None) -> "ReportOutput":
        """Mirror output to terminal (default: the module console) and a plain text file."""
        file_console = Console(
            file=report_file,
            color_system=None,
            width=REPORT_FILE_WIDTH,
            highlight=False,
            soft_wrap=True,
        )
        return cls(terminal or console, file_console)

    def print(self, *objects, **kwargs) -> None:
        for target in self.consoles:
            target.print(*objects, **kwargs)

    def print_entry(self, size: str, path: str, style: str) -> None:
        """Print a ``<size>\\t<path>`` line.

        Rich expands tabs when rendering, so consoles without color (the
        report file, redirected output) get the line written verbatim.
        """
        for target in self.consoles:
            if target.color_system is None:
                target.file.write(f"{size}\t{path}\n")
            else:
                target.print(f"[{style}]{size}[/{style}]\t{escape(path)}")


def show_header(out: ReportOutput, title: str) -> None:
    """Print a section header framed by rules."""
    out.print(HEADER_RULE)
    out.print(f"  [bold]{escape(title)}[/bold]")
    out.print(HEADER_RULE)


def show_report_title(out: ReportOutput, day: str, scan_dir: Path) -> None:
    out.print(f"[bold blue]DISK EATERS WATCH REPORT - {day}[/bold blue]")
    out.print(f"Scan Directory: {escape(str(scan_dir))}")
    out.print()


def show_entries(out: ReportOutput, entries: Iterable[DiskEntry]) -> None:
    """Print entries as ``<size>\\t<path>`` lines."""
    for entry in entries:
        out.print_entry(format_size(entry.size), entry.path, "cyan")


def show_growth(out: ReportOutput, report: GrowthReport) -> None:
    """Print growth entries, or the no-history message."""
    if not report.has_history:
        out.print(f"[dim]{NO_HISTORY_MESSAGE}[/dim]")
        return
    if not report.entries:
        out.print("[dim]No growth since the previous run.[/dim]")
        return
    for entry in report.entries:
        out.print_entry(f"+{format_size(entry.size)}", entry.path, "yellow")


def show_section_error(out: ReportOutput, message: str) -> None:
    """Print an error in place of a section body."""
    out.print(f"[red]{escape(message)}[/red]")


def process_table(processes: list[ProcessInfo]) -> Table:
    """Build a table of processes holding a file."""
    table = Table(box=box.SIMPLE, show_header=True, header_style="bold", pad_edge=False)
    table.add_column("PID", justify="right", no_wrap=True)
    table.add_column("USER", no_wrap=True)
    table.add_column("ACCESS", no_wrap=True)
    table.add_column("COMMAND", overflow="fold")

    for process in processes:
        table.add_row(
            process.pid,
            escape(process.user),
            access_label(process.access),
            escape(process.command),
        )
    return table


def show_file_processes(
    out: ReportOutput,
    entry: DiskEntry,
    processes: Optional[list[ProcessInfo]],
    error: Optional[str] = None,
    grown: bool = False,
) -> None:
    """Print the processes holding one file, or the lookup error."""
    detail = f"grew by {format_size(entry.size)}" if grown else format_size(entry.size)
    out.print()
    out.print(f"File: {escape(entry.path)} ({detail})")

    if error is not None:
        out.print(f"  [red]Error finding processes: {escape(error)}[/red]")
    elif not processes:
        out.print("  [dim]No processes currently using this file[/dim]")
    else:
        out.print(process_table(processes))


def show_history(reports: list[Path]) -> None:
    """List saved daily reports."""
    if not reports:
        console.print("[yellow]No reports saved yet.[/yellow]")
        return

    table = Table(title="Saved Reports", show_header=True, header_style="bold")
    table.add_column("Date", no_wrap=True)
    table.add_column("Size", justify="right", no_wrap=True)
    table.add_column("Path", overflow="fold")

    for report in reports:
        day = report.stem.removeprefix("disk_eaters_")
        try:
            size = format_size(report.stat().st_size)
        except OSError:
            size = "?"
        table.add_row(day, size, escape(str(report)))

    console.print(table)
