"""Concurrent per-directory size aggregation.

Each directory down to the depth limit gets its own entry. A directory's own
size counts the regular files directly inside it; every immediate child
directory is deferred and measured by a separate task one level deeper.
Directories at the depth limit are leaves: their size covers the whole
subtree below them.

Tasks run on a thread pool. The calling thread gathers finished tasks,
collects their entries and submits their deferred children until no work is
left.
"""

import logging
import os
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from diskeaters.file_scanner import check_scan_root, iter_regular_files
from diskeaters.filesystem import crosses_boundary, get_device
from diskeaters.models import DEFAULT_MAX_DEPTH, DiskEntry, ScanStats
from diskeaters.selector import top_n

logger = logging.getLogger(__name__)


@dataclass
class _Measurement:
    """Result of measuring one directory."""

    path: str
    depth: int
    size: int = 0
    readable: bool = True
    deferred: list[str] = field(default_factory=list)


def _measure_directory(
    path: str,
    depth: int,
    max_depth: int,
    root_device: Optional[int],
    stats: ScanStats,
) -> Optional[_Measurement]:
    """Measure a single directory, deferring its children when above the limit."""
    if depth > max_depth:
        return None

    measurement = _Measurement(path=path, depth=depth)
    try:
        with os.scandir(path) as it:
            children = sorted(it, key=lambda entry: entry.name)
    except (PermissionError, OSError) as e:
        logger.debug("Skipping unreadable directory %s: %s", path, e)
        stats.add(skipped=1)
        measurement.readable = False
        return measurement

    for child in children:
        try:
            if child.is_file(follow_symlinks=False):
                measurement.size += child.stat(follow_symlinks=False).st_size
            elif child.is_dir(follow_symlinks=False):
                if crosses_boundary(root_device, child.path):
                    logger.debug("Not crossing filesystem boundary at %s", child.path)
                    stats.add(boundary=1)
                elif depth < max_depth:
                    measurement.deferred.append(child.path)
                else:
                    measurement.size += sum(
                        size for _, size in iter_regular_files(child.path, root_device, stats)
                    )
        except (PermissionError, OSError) as e:
            logger.debug("Skipping %s: %s", child.path, e)
            stats.add(skipped=1)

    return measurement


def aggregate_directory_sizes(
    root: Union[str, Path],
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_workers: Optional[int] = None,
    stats: Optional[ScanStats] = None,
) -> list[DiskEntry]:
    """
    Compute a size entry for every directory under root down to max_depth.

    Directories on another filesystem than root are skipped entirely, as are
    directories that cannot be read. Symbolic links are not followed.

    Args:
        root: Directory to scan (depth 0)
        max_depth: Deepest level that still gets its own entry
        max_workers: Thread pool size (executor default if None)
        stats: Optional ScanStats to collect skipped path counts

    Returns:
        One DiskEntry per readable directory, sorted by path

    Raises:
        ScanError: If root is not a directory
    """
    root_path = check_scan_root(root)
    if stats is None:
        stats = ScanStats()
    root_device = get_device(root_path)

    entries: list[DiskEntry] = []
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        pending = {
            executor.submit(_measure_directory, root_path, 0, max_depth, root_device, stats)
        }
        while pending:
            done, pending = wait(pending, return_when=FIRST_COMPLETED)
            for future in done:
                measurement = future.result()
                if measurement is None or not measurement.readable:
                    continue
                entries.append(DiskEntry(path=measurement.path, size=measurement.size))
                for child in measurement.deferred:
                    pending.add(
                        executor.submit(
                            _measure_directory,
                            child,
                            measurement.depth + 1,
                            max_depth,
                            root_device,
                            stats,
                        )
                    )

    # Completion order depends on thread scheduling
    entries.sort(key=lambda entry: entry.path)
    logger.info(
        "Aggregated %d directories under %s (%d skipped, %d boundaries)",
        len(entries),
        root_path,
        stats.skipped_paths,
        stats.boundary_skips,
    )
    return entries


def find_largest_directories(
    root: Union[str, Path],
    max_items: int,
    max_depth: int = DEFAULT_MAX_DEPTH,
    max_workers: Optional[int] = None,
    stats: Optional[ScanStats] = None,
) -> list[DiskEntry]:
    """Return the max_items largest directory entries under root."""
    entries = aggregate_directory_sizes(root, max_depth, max_workers, stats)
    return top_n(entries, max_items)
