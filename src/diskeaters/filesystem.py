"""Filesystem boundary detection.

Traversal must not leave the filesystem the scan started on. Boundaries are
found by comparing the device identity (``st_dev``) of two paths.
"""

import os
from pathlib import Path
from typing import Optional, Union

PathLike = Union[str, Path]


def get_device(path: PathLike) -> Optional[int]:
    """Return the device id of path, or None if it cannot be stat'ed."""
    try:
        return os.stat(path).st_dev
    except (PermissionError, OSError):
        return None


def is_on_different_filesystem(path1: PathLike, path2: PathLike) -> bool:
    """
    Check whether two paths live on different filesystems.

    If either path cannot be stat'ed the answer is False, so an ambiguous
    failure never prunes a traversal.

    Args:
        path1: First path
        path2: Second path

    Returns:
        True only if both devices are known and differ
    """
    return crosses_boundary(get_device(path1), path2)


def crosses_boundary(root_device: Optional[int], path: PathLike) -> bool:
    """Check whether path is on a different device than root_device."""
    if root_device is None:
        return False
    device = get_device(path)
    if device is None:
        return False
    return device != root_device
