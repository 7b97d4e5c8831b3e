"""Regular file discovery.

Walks a directory tree with os.scandir and reports every regular file with
its size. Symbolic links are never followed and special files are ignored.
"""

import logging
import os
from pathlib import Path
from typing import Generator, Optional, Union

from diskeaters.exceptions import ScanError
from diskeaters.filesystem import crosses_boundary, get_device
from diskeaters.models import DiskEntry, ScanStats
from diskeaters.selector import top_n

logger = logging.getLogger(__name__)


def iter_regular_files(
    top: str,
    root_device: Optional[int],
    stats: ScanStats,
) -> Generator[tuple[str, int], None, None]:
    """
    Yield (path, size) for every regular file below top.

    Directories on another device than root_device are pruned. Entries that
    cannot be read are skipped and counted in stats.

    Traversal is depth-first with children visited in name order, so two
    walks of an unchanged tree yield files in the same order.
    """
    pending = [top]
    while pending:
        current = pending.pop()
        try:
            with os.scandir(current) as it:
                children = sorted(it, key=lambda entry: entry.name)
        except (PermissionError, OSError) as e:
            logger.debug("Skipping unreadable directory %s: %s", current, e)
            stats.add(skipped=1)
            continue

        subdirs = []
        for child in children:
            try:
                if child.is_file(follow_symlinks=False):
                    size = child.stat(follow_symlinks=False).st_size
                elif child.is_dir(follow_symlinks=False):
                    if crosses_boundary(root_device, child.path):
                        logger.debug("Not crossing filesystem boundary at %s", child.path)
                        stats.add(boundary=1)
                    else:
                        subdirs.append(child.path)
                    continue
                else:
                    continue
            except (PermissionError, OSError) as e:
                logger.debug("Skipping %s: %s", child.path, e)
                stats.add(skipped=1)
                continue
            yield child.path, size

        # Reversed so the stack pops them in name order
        pending.extend(reversed(subdirs))


def check_scan_root(root: Union[str, Path]) -> str:
    """Return root as a string, raising ScanError if it is not a directory."""
    root_path = os.fspath(root)
    if not os.path.isdir(root_path):
        raise ScanError(f"Not a directory: {root_path}")
    return root_path


def scan_files(
    root: Union[str, Path],
    stats: Optional[ScanStats] = None,
) -> Generator[DiskEntry, None, None]:
    """
    Find all regular files under root, at any depth.

    Args:
        root: Directory to scan
        stats: Optional ScanStats to collect skipped path counts

    Yields:
        One DiskEntry per regular file

    Raises:
        ScanError: If root is not a readable directory
    """
    root_path = check_scan_root(root)
    if stats is None:
        stats = ScanStats()

    for path, size in iter_regular_files(root_path, get_device(root_path), stats):
        yield DiskEntry(path=path, size=size)


def find_largest_files(
    root: Union[str, Path],
    max_items: int,
    stats: Optional[ScanStats] = None,
) -> list[DiskEntry]:
    """
    Find the largest regular files under root.

    Args:
        root: Directory to scan
        max_items: Number of files to return
        stats: Optional ScanStats to collect skipped path counts

    Returns:
        Up to max_items entries, largest first
    """
    if stats is None:
        stats = ScanStats()
    largest = top_n(scan_files(root, stats), max_items)
    logger.info(
        "File scan of %s done (%d skipped, %d boundaries)",
        root,
        stats.skipped_paths,
        stats.boundary_skips,
    )
    return largest
