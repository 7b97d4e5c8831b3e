"""Find processes that hold a file open.

Shells out to the platform tools (lsof, fuser, Sysinternals handle) and
parses their text output. On Linux /proc is read directly when neither
tool is installed.
"""

import logging
import os
import re
import subprocess
import sys
from pathlib import Path
from typing import Iterator, Optional

from diskeaters.exceptions import ProcessLocatorError, UnsupportedPlatformError
from diskeaters.models import AccessMode, ProcessInfo

logger = logging.getLogger(__name__)

TOOL_TIMEOUT = 10  # seconds
PROC_ROOT = Path("/proc")

_LSOF_ACCESS = {
    "r": AccessMode.READ,
    "w": AccessMode.WRITE,
    "u": AccessMode.READ_WRITE,
}

# Low two bits of the open() flags in /proc/<pid>/fdinfo
_FLAG_ACCESS = {
    0: AccessMode.READ,
    1: AccessMode.WRITE,
    2: AccessMode.READ_WRITE,
}

_HANDLE_LINE = re.compile(
    r"^(?P<command>\S+)\s+pid:\s*(?P<pid>\d+)\s+type:\s*\S+\s+(?:(?P<user>.*?)\s+)??[0-9A-Fa-f]+:\s*(?P<path>.+)$"
)


def _merge_access(old: AccessMode, new: AccessMode) -> AccessMode:
    """Combine access modes of several descriptors for the same file."""
    if old == AccessMode.UNKNOWN:
        return new
    if new == AccessMode.UNKNOWN or new == old:
        return old
    return AccessMode.READ_WRITE


def _run_tool(args: list[str]) -> Optional[subprocess.CompletedProcess]:
    """Run an external tool, returning None if it is missing or hangs."""
    try:
        return subprocess.run(args, capture_output=True, text=True, timeout=TOOL_TIMEOUT)
    except FileNotFoundError:
        logger.debug("%s is not installed", args[0])
    except subprocess.TimeoutExpired:
        logger.debug("%s timed out after %d seconds", args[0], TOOL_TIMEOUT)
    except OSError as e:
        logger.debug("Cannot run %s: %s", args[0], e)
    return None


def parse_lsof_output(output: str) -> list[ProcessInfo]:
    """
    Parse the field output of ``lsof -F pcLa``.

    Each line starts with a one-character field id: p (pid), c (command),
    L (login name), u (uid), f (descriptor), a (access mode). A ``p`` line
    starts a new process; the other fields belong to the last one seen.
    """
    processes: list[ProcessInfo] = []
    current: Optional[dict] = None

    for line in output.splitlines():
        if not line:
            continue
        field_id, value = line[0], line[1:]

        if field_id == "p":
            if current is not None:
                processes.append(ProcessInfo(**current))
            current = {"pid": value, "user": "?", "command": "", "access": AccessMode.UNKNOWN}
        elif current is None:
            continue
        elif field_id == "c":
            current["command"] = value
        elif field_id == "L":
            current["user"] = value
        elif field_id == "u" and current["user"] == "?":
            current["user"] = value
        elif field_id == "a":
            access = _LSOF_ACCESS.get(value.strip(), AccessMode.UNKNOWN)
            current["access"] = _merge_access(current["access"], access)

    if current is not None:
        processes.append(ProcessInfo(**current))
    return processes


def parse_fuser_output(output: str, path: str) -> list[ProcessInfo]:
    """
    Parse the table printed by ``fuser -v``.

    The first row is prefixed with ``<path>:``; continuation rows are
    indented. Rows for kernel users (mounts, swap) have no numeric pid and
    are ignored.
    """
    processes = []
    prefix = f"{path}:"

    for line in output.splitlines():
        if line.startswith(prefix):
            line = line[len(prefix):]
        fields = line.split()
        if len(fields) < 4 or not fields[1].isdigit():
            continue

        user, pid, flags = fields[0], fields[1], fields[2]
        if "F" in flags:
            access = AccessMode.WRITE
        elif "f" in flags:
            access = AccessMode.READ
        else:
            access = AccessMode.UNKNOWN

        processes.append(
            ProcessInfo(pid=pid, user=user, command=" ".join(fields[3:]), access=access)
        )
    return processes


def parse_handle_output(output: str, path: str) -> list[ProcessInfo]:
    """Parse the output of the Sysinternals ``handle`` tool for one file."""
    processes = []
    wanted = path.lower()

    for line in output.splitlines():
        line = line.strip()
        if wanted not in line.lower():
            continue
        match = _HANDLE_LINE.match(line)
        if not match:
            continue
        processes.append(
            ProcessInfo(
                pid=match.group("pid"),
                user=(match.group("user") or "?").strip() or "?",
                command=match.group("command"),
            )
        )
    return processes


def _read_text(path: Path) -> Optional[str]:
    try:
        return path.read_text(errors="replace")
    except OSError:
        return None


def _proc_user(proc_dir: Path) -> str:
    status = _read_text(proc_dir / "status")
    if status is None:
        return "?"
    for line in status.splitlines():
        if line.startswith("Uid:"):
            fields = line.split()
            if len(fields) < 2:
                break
            try:
                import pwd

                return pwd.getpwuid(int(fields[1])).pw_name
            except (ImportError, KeyError, ValueError):
                return fields[1]
    return "?"


def _proc_command(proc_dir: Path) -> str:
    cmdline = _read_text(proc_dir / "cmdline")
    if cmdline:
        return cmdline.replace("\x00", " ").strip()
    # Kernel threads have an empty cmdline
    return (_read_text(proc_dir / "comm") or "").strip()


def _fd_access(fdinfo: Path) -> AccessMode:
    content = _read_text(fdinfo)
    if content is None:
        return AccessMode.UNKNOWN
    for line in content.splitlines():
        if line.startswith("flags:"):
            try:
                flags = int(line.split()[1], 8)
            except (IndexError, ValueError):
                return AccessMode.UNKNOWN
            return _FLAG_ACCESS.get(flags & 0o3, AccessMode.UNKNOWN)
    return AccessMode.UNKNOWN


def _iter_fd_links(proc_root: Path) -> Iterator[tuple[str, Path]]:
    """Yield (pid, fd link) pairs, skipping processes that exit or deny access."""
    try:
        with os.scandir(proc_root) as it:
            pids = [entry.name for entry in it if entry.name.isdigit()]
    except OSError as e:
        logger.debug("Cannot list %s: %s", proc_root, e)
        return

    for pid in pids:
        fd_dir = proc_root / pid / "fd"
        try:
            with os.scandir(fd_dir) as it:
                names = [entry.name for entry in it]
        except OSError:
            continue
        for name in names:
            yield pid, fd_dir / name


def scan_proc(path: str, proc_root: Path = PROC_ROOT) -> list[ProcessInfo]:
    """
    Find holders of path by reading /proc/<pid>/fd symlinks.

    Only processes we are allowed to inspect are found.
    """
    target = os.path.abspath(path)
    access_by_pid: dict[str, AccessMode] = {}

    for pid, fd_link in _iter_fd_links(proc_root):
        try:
            if os.readlink(fd_link) != target:
                continue
        except OSError:
            continue
        access = _fd_access(proc_root / pid / "fdinfo" / fd_link.name)
        access_by_pid[pid] = _merge_access(access_by_pid.get(pid, AccessMode.UNKNOWN), access)

    return [
        ProcessInfo(
            pid=pid,
            user=_proc_user(proc_root / pid),
            command=_proc_command(proc_root / pid),
            access=access,
        )
        for pid, access in sorted(access_by_pid.items(), key=lambda item: int(item[0]))
    ]


def _lsof(path: str) -> Optional[list[ProcessInfo]]:
    """Run lsof; None means the tool is unavailable or failed."""
    result = _run_tool(["lsof", "-F", "pcLa", path])
    if result is None:
        return None
    if result.returncode == 0:
        return parse_lsof_output(result.stdout)
    # lsof exits 1 when nothing has the file open
    if result.returncode == 1 and not result.stdout.strip():
        return []
    logger.debug("lsof exited with %d: %s", result.returncode, result.stderr.strip())
    return None


def _find_processes_linux(path: str) -> list[ProcessInfo]:
    processes = _lsof(path)
    if processes is not None:
        return processes

    result = _run_tool(["fuser", "-v", path])
    if result is not None and result.returncode in (0, 1):
        # fuser -v prints its table on stderr
        return parse_fuser_output(result.stderr, path)

    logger.debug("Falling back to %s for %s", PROC_ROOT, path)
    return scan_proc(path)


def _find_processes_macos(path: str) -> list[ProcessInfo]:
    processes = _lsof(path)
    if processes is None:
        raise ProcessLocatorError("lsof is not available or failed")
    return processes


def _find_processes_windows(path: str) -> list[ProcessInfo]:
    result = _run_tool(["handle", "-nobanner", path])
    if result is None:
        raise UnsupportedPlatformError(
            "Process lookup on Windows requires the Sysinternals Handle tool"
        )
    return parse_handle_output(result.stdout, path)


def find_processes_using_file(path: str, platform: Optional[str] = None) -> list[ProcessInfo]:
    """
    Find the processes currently holding a file open.

    Args:
        path: File to look up
        platform: Platform name as in sys.platform (defaults to the running one)

    Returns:
        List of ProcessInfo, empty if no process has the file open

    Raises:
        UnsupportedPlatformError: If no lookup mechanism exists for the platform
        ProcessLocatorError: If the lookup tool failed
    """
    platform = platform or sys.platform

    if platform.startswith("linux"):
        return _find_processes_linux(path)
    if platform == "darwin":
        return _find_processes_macos(path)
    if platform in ("win32", "cygwin"):
        return _find_processes_windows(path)
    raise UnsupportedPlatformError(f"Process lookup is not implemented for {platform}")
