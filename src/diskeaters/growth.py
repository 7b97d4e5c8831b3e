"""Growth analysis between two snapshots."""

import logging
from pathlib import Path

from diskeaters.models import DiskEntry, GrowthReport
from diskeaters.selector import top_n
from diskeaters.snapshot import load_entries

logger = logging.getLogger(__name__)

NO_HISTORY_MESSAGE = (
    "No previous data available for comparison. "
    "Growth analysis will be available after the next run."
)


def compute_growth(current: list[DiskEntry], previous: list[DiskEntry]) -> list[DiskEntry]:
    """
    Compute size deltas for paths present in both lists.

    Only positive deltas are kept. Paths that are new in current are not
    reported as growth.
    """
    previous_sizes = {entry.path: entry.size for entry in previous}
    growth = []
    for entry in current:
        if entry.path not in previous_sizes:
            continue
        delta = entry.size - previous_sizes[entry.path]
        if delta > 0:
            growth.append(DiskEntry(path=entry.path, size=delta))
    return growth


def analyze_growth(current_file: Path, previous_file: Path, max_items: int) -> GrowthReport:
    """
    Compare the current snapshot against the previous one.

    Args:
        current_file: Snapshot written by this run
        previous_file: Snapshot from the last successful run
        max_items: Number of entries to return

    Returns:
        GrowthReport with has_history=False if there is no previous snapshot,
        otherwise the top entries by growth

    Raises:
        SnapshotError: If a snapshot exists but cannot be read
    """
    if not previous_file.exists():
        logger.info("No previous snapshot at %s", previous_file)
        return GrowthReport(has_history=False)

    current = load_entries(current_file)
    previous = load_entries(previous_file)
    growth = compute_growth(current, previous)
    return GrowthReport(has_history=True, entries=top_n(growth, max_items))
