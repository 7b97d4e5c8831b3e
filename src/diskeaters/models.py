"""Data models for disk-eaters."""

import threading
from datetime import date
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr

DEFAULT_SCAN_DIR = "/"
DEFAULT_LOG_DIR = "/var/log/disk_eaters"
DEFAULT_MAX_ITEMS = 5
DEFAULT_MAX_DEPTH = 4


class DiskEntry(BaseModel):
    """A directory or file with its size in bytes.

    For growth results ``size`` holds the size delta instead.
    """

    model_config = ConfigDict(frozen=True)

    path: str = Field(..., description="Path identifying the directory or file")
    size: int = Field(..., ge=0, description="Size in bytes")


class AccessMode(str, Enum):
    """How a process has a file open."""

    READ = "read"
    WRITE = "write"
    READ_WRITE = "read-write"
    UNKNOWN = "unknown"


class ProcessInfo(BaseModel):
    """A process holding a file open."""

    pid: str = Field(..., description="Process identifier")
    user: str = Field("?", description="Owning user, '?' when unknown")
    command: str = Field("", description="Command name or command line")
    access: AccessMode = Field(AccessMode.UNKNOWN, description="Access mode of the open file")


class GrowthReport(BaseModel):
    """Result of comparing a current snapshot against the previous one."""

    has_history: bool = Field(..., description="Whether a previous snapshot existed")
    entries: list[DiskEntry] = Field(default_factory=list, description="Top entries by growth")


class ScanStats(BaseModel):
    """Diagnostics collected during a scan.

    Individual traversal errors are never surfaced, only counted here.
    """

    skipped_paths: int = Field(0, description="Paths skipped because of errors")
    boundary_skips: int = Field(0, description="Directories pruned at a filesystem boundary")

    _lock: threading.Lock = PrivateAttr(default_factory=threading.Lock)

    def add(self, skipped: int = 0, boundary: int = 0) -> None:
        """Add counts, safe to call from several threads."""
        with self._lock:
            self.skipped_paths += skipped
            self.boundary_skips += boundary


class ReportConfig(BaseModel):
    """Configuration for a report run."""

    scan_dir: Path = Field(Path(DEFAULT_SCAN_DIR), description="Directory to scan")
    log_dir: Path = Field(Path(DEFAULT_LOG_DIR), description="Directory for snapshots and reports")
    max_items: int = Field(DEFAULT_MAX_ITEMS, ge=1, description="Number of items per section")
    show_processes: bool = Field(True, description="Look up processes holding the top files")
    max_depth: int = Field(DEFAULT_MAX_DEPTH, ge=0, description="Directory aggregation depth limit")
    max_workers: Optional[int] = Field(None, ge=1, description="Worker threads for aggregation")

    @property
    def history_dir(self) -> Path:
        """Directory holding one report per day."""
        return self.log_dir / "history"

    def report_file(self, day: date) -> Path:
        """Path of the report for a given day."""
        return self.history_dir / f"disk_eaters_{day.isoformat()}.log"


class ReportSummary(BaseModel):
    """Outcome of a report run."""

    report_file: Path
    directories: list[DiskEntry] = Field(default_factory=list)
    files: list[DiskEntry] = Field(default_factory=list)
    directory_growth: Optional[GrowthReport] = None
    file_growth: Optional[GrowthReport] = None
    skipped_paths: int = 0
    errors: list[str] = Field(default_factory=list, description="Section errors shown inline")
