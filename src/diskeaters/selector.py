"""Top-N selection of entries by size."""

import heapq
from typing import Iterable

from diskeaters.models import DiskEntry


def top_n(entries: Iterable[DiskEntry], limit: int) -> list[DiskEntry]:
    """
    Select the largest entries.

    Sorting is stable: entries of equal size keep the order in which they
    were encountered.

    Args:
        entries: Entries to choose from (any iterable, consumed once)
        limit: Maximum number of entries to return

    Returns:
        Up to limit entries, largest size first
    """
    if limit <= 0:
        return []
    # nlargest is documented as equivalent to sorted(..., reverse=True)[:n],
    # which keeps ties in input order.
    return heapq.nlargest(limit, entries, key=lambda entry: entry.size)
