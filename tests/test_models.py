"""Tests for data models."""

from datetime import date
from pathlib import Path
from threading import Thread

import pytest
from pydantic import ValidationError

from diskeaters.models import AccessMode, DiskEntry, ProcessInfo, ReportConfig, ScanStats


class TestDiskEntry:
    def test_create(self):
        entry = DiskEntry(path="/var", size=10)
        assert entry.path == "/var"
        assert entry.size == 10

    def test_negative_size_rejected(self):
        with pytest.raises(ValidationError):
            DiskEntry(path="/var", size=-1)

    def test_immutable(self):
        entry = DiskEntry(path="/var", size=10)
        with pytest.raises(ValidationError):
            entry.size = 20

    def test_equality_by_value(self):
        assert DiskEntry(path="/a", size=1) == DiskEntry(path="/a", size=1)


class TestProcessInfo:
    def test_defaults(self):
        info = ProcessInfo(pid="1")
        assert info.user == "?"
        assert info.access == AccessMode.UNKNOWN

    def test_access_values(self):
        assert AccessMode("read-write") == AccessMode.READ_WRITE


class TestScanStats:
    def test_add_from_threads(self):
        stats = ScanStats()
        threads = [Thread(target=lambda: [stats.add(skipped=1) for _ in range(1000)]) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert stats.skipped_paths == 4000
        assert stats.boundary_skips == 0


class TestReportConfig:
    def test_defaults(self):
        config = ReportConfig()
        assert config.scan_dir == Path("/")
        assert config.log_dir == Path("/var/log/disk_eaters")
        assert config.max_items == 5
        assert config.show_processes is True
        assert config.max_depth == 4

    def test_history_dir_and_report_file(self, tmp_path):
        config = ReportConfig(log_dir=tmp_path)
        assert config.history_dir == tmp_path / "history"
        assert config.report_file(date(2024, 3, 9)) == tmp_path / "history" / "disk_eaters_2024-03-09.log"

    def test_invalid_max_items(self):
        with pytest.raises(ValidationError):
            ReportConfig(max_items=0)

    def test_invalid_workers(self):
        with pytest.raises(ValidationError):
            ReportConfig(max_workers=0)
