"""Tests for snapshot persistence."""

import pytest

from diskeaters.exceptions import SnapshotError
from diskeaters.models import DiskEntry
from diskeaters.snapshot import (
    copy_forward,
    discard_current,
    load_entries,
    rotate_snapshot,
    save_entries,
    snapshot_paths,
)


@pytest.fixture
def entries():
    return [
        DiskEntry(path="/var/log", size=3000),
        DiskEntry(path="/home/user/My Documents", size=2000),
        DiskEntry(path="/tmp", size=0),
    ]


class TestSaveEntries:
    def test_writes_size_tab_path_lines(self, tmp_path, entries):
        destination = tmp_path / "current.dirs"
        save_entries(entries, destination)

        assert destination.read_text() == (
            "3000\t/var/log\n2000\t/home/user/My Documents\n0\t/tmp\n"
        )

    def test_replaces_existing_file(self, tmp_path, entries):
        destination = tmp_path / "current.dirs"
        destination.write_text("999\t/stale\n" * 10)

        save_entries(entries[:1], destination)
        assert destination.read_text() == "3000\t/var/log\n"

    def test_unwritable_destination(self, tmp_path, entries):
        with pytest.raises(SnapshotError):
            save_entries(entries, tmp_path / "missing" / "current.dirs")


class TestLoadEntries:
    def test_round_trip(self, tmp_path, entries):
        snapshot = tmp_path / "current.files"
        save_entries(entries, snapshot)
        assert load_entries(snapshot) == entries

    def test_skips_malformed_lines(self, tmp_path):
        snapshot = tmp_path / "previous.dirs"
        snapshot.write_text(
            "100\t/good\n"
            "no tab here\n"
            "abc\t/bad-size\n"
            "-5\t/negative\n"
            "\n"
            "200\t/also good\n"
        )

        loaded = load_entries(snapshot)
        assert [(e.size, e.path) for e in loaded] == [(100, "/good"), (200, "/also good")]

    def test_rejects_loose_integer_forms(self, tmp_path):
        snapshot = tmp_path / "previous.files"
        snapshot.write_text(
            " 5\t/padded\n"
            "+5\t/signed\n"
            "1_000\t/underscored\n"
            "²\t/superscript\n"
            "7\t/plain\n",
            encoding="utf-8",
        )

        assert load_entries(snapshot) == [DiskEntry(path="/plain", size=7)]

    def test_path_keeps_extra_tabs(self, tmp_path):
        """Only the first tab separates the fields."""
        snapshot = tmp_path / "previous.dirs"
        snapshot.write_text("10\t/odd\tname\n")
        assert load_entries(snapshot) == [DiskEntry(path="/odd\tname", size=10)]

    def test_missing_file(self, tmp_path):
        with pytest.raises(SnapshotError):
            load_entries(tmp_path / "nope")


class TestSnapshotPaths:
    def test_layout(self, tmp_path):
        paths = snapshot_paths(tmp_path, "dirs")
        assert paths.current == tmp_path / "current.dirs"
        assert paths.previous == tmp_path / "previous.dirs"


class TestRotation:
    def test_copy_forward_replaces_previous(self, tmp_path):
        current = tmp_path / "current.files"
        previous = tmp_path / "previous.files"
        current.write_text("5\t/new\n")
        previous.write_text("1\t/old\n2\t/older\n")

        copy_forward(current, previous)

        assert previous.read_text() == "5\t/new\n"
        assert current.exists()

    def test_rotate_moves_current_to_previous(self, tmp_path):
        paths = snapshot_paths(tmp_path, "files")
        paths.current.write_text("5\t/new\n")

        assert rotate_snapshot(paths) is True
        assert paths.previous.read_text() == "5\t/new\n"
        assert not paths.current.exists()

    def test_rotate_without_current_keeps_previous(self, tmp_path):
        paths = snapshot_paths(tmp_path, "dirs")
        paths.previous.write_text("1\t/old\n")

        assert rotate_snapshot(paths) is False
        assert paths.previous.read_text() == "1\t/old\n"

    def test_discard_current(self, tmp_path):
        paths = snapshot_paths(tmp_path, "dirs")
        paths.current.write_text("1\t/stale\n")

        discard_current(paths)
        assert not paths.current.exists()

        # Nothing to remove is fine
        discard_current(paths)
