"""Snapshot persistence.

A snapshot is a plain text file with one ``size<TAB>path`` line per entry.
Paths containing tabs or newlines cannot be represented.
"""

import logging
import shutil
from pathlib import Path
from typing import Iterable, Literal

from pydantic import BaseModel

from diskeaters.exceptions import SnapshotError
from diskeaters.models import DiskEntry

logger = logging.getLogger(__name__)

SnapshotKind = Literal["dirs", "files"]
SNAPSHOT_KINDS: tuple[SnapshotKind, ...] = ("dirs", "files")


class SnapshotPaths(BaseModel):
    """Current and previous snapshot files for one kind of entry."""

    kind: str
    current: Path
    previous: Path


def snapshot_paths(log_dir: Path, kind: SnapshotKind) -> SnapshotPaths:
    """Snapshot file locations for a kind ('dirs' or 'files') under log_dir."""
    return SnapshotPaths(
        kind=kind,
        current=log_dir / f"current.{kind}",
        previous=log_dir / f"previous.{kind}",
    )


def save_entries(entries: Iterable[DiskEntry], destination: Path) -> None:
    """
    Write entries to a snapshot file, replacing it.

    Args:
        entries: Entries in the order they should be stored
        destination: Snapshot file to write

    Raises:
        SnapshotError: If the file cannot be written
    """
    try:
        with open(destination, "w", encoding="utf-8", errors="surrogateescape") as f:
            for entry in entries:
                f.write(f"{entry.size}\t{entry.path}\n")
    except OSError as e:
        raise SnapshotError(f"Cannot write snapshot {destination}: {e}") from e


def load_entries(source: Path) -> list[DiskEntry]:
    """
    Read entries back from a snapshot file.

    Malformed lines are skipped.

    Raises:
        SnapshotError: If the file cannot be read
    """
    entries = []
    try:
        with open(source, encoding="utf-8", errors="surrogateescape") as f:
            for line_number, line in enumerate(f, 1):
                line = line.rstrip("\n")
                parts = line.split("\t", 1)
                if len(parts) != 2:
                    logger.debug("%s:%d: expected 2 fields", source, line_number)
                    continue
                # Plain decimal digits only: no sign, padding or underscores
                if not (parts[0].isascii() and parts[0].isdigit()):
                    logger.debug("%s:%d: bad size %r", source, line_number, parts[0])
                    continue
                entries.append(DiskEntry(path=parts[1], size=int(parts[0])))
    except OSError as e:
        raise SnapshotError(f"Cannot read snapshot {source}: {e}") from e
    return entries


def copy_forward(current: Path, previous: Path) -> None:
    """Replace the previous snapshot with the content of the current one."""
    try:
        shutil.copyfile(current, previous)
    except OSError as e:
        raise SnapshotError(f"Cannot copy {current} to {previous}: {e}") from e


def rotate_snapshot(paths: SnapshotPaths) -> bool:
    """
    Make the current snapshot the previous one.

    Only call this after a successful run. Does nothing if there is no
    current snapshot.

    Returns:
        True if a snapshot was rotated
    """
    if not paths.current.exists():
        return False
    copy_forward(paths.current, paths.previous)
    try:
        paths.current.unlink()
    except OSError as e:
        raise SnapshotError(f"Cannot remove {paths.current}: {e}") from e
    logger.info("Rotated %s snapshot to %s", paths.kind, paths.previous)
    return True


def discard_current(paths: SnapshotPaths) -> None:
    """Remove a stale current snapshot left behind by an interrupted run."""
    try:
        paths.current.unlink()
    except FileNotFoundError:
        return
    except OSError as e:
        raise SnapshotError(f"Cannot remove stale snapshot {paths.current}: {e}") from e
    logger.info("Removed stale snapshot %s", paths.current)
