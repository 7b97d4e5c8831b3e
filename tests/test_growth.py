"""Tests for growth analysis."""

import pytest

from diskeaters.exceptions import SnapshotError
from diskeaters.growth import analyze_growth, compute_growth
from diskeaters.models import DiskEntry
from diskeaters.snapshot import save_entries


def entry(path: str, size: int) -> DiskEntry:
    return DiskEntry(path=path, size=size)


class TestComputeGrowth:
    def test_only_known_paths_that_grew(self):
        """New paths are not growth; only x grew."""
        growth = compute_growth(
            current=[entry("x", 1500), entry("y", 200)],
            previous=[entry("x", 1000)],
        )
        assert growth == [entry("x", 500)]

    def test_shrinking_and_unchanged_excluded(self):
        growth = compute_growth(
            current=[entry("a", 10), entry("b", 5), entry("c", 7)],
            previous=[entry("a", 10), entry("b", 9), entry("c", 1)],
        )
        assert growth == [entry("c", 6)]

    def test_deltas_are_positive(self):
        growth = compute_growth(
            current=[entry(str(i), i * 3) for i in range(10)],
            previous=[entry(str(i), i * 2) for i in range(10)],
        )
        assert all(e.size > 0 for e in growth)


class TestAnalyzeGrowth:
    @pytest.fixture
    def snapshots(self, tmp_path):
        current = tmp_path / "current.dirs"
        previous = tmp_path / "previous.dirs"
        save_entries([entry("x", 1500), entry("y", 200)], current)
        save_entries([entry("x", 1000)], previous)
        return current, previous

    def test_scenario(self, snapshots):
        report = analyze_growth(*snapshots, max_items=5)
        assert report.has_history is True
        assert report.entries == [entry("x", 500)]

    def test_no_previous_snapshot(self, tmp_path):
        current = tmp_path / "current.dirs"
        save_entries([entry("x", 1)], current)

        report = analyze_growth(current, tmp_path / "previous.dirs", max_items=5)

        assert report.has_history is False
        assert report.entries == []

    def test_repeatable(self, snapshots):
        assert analyze_growth(*snapshots, 5) == analyze_growth(*snapshots, 5)

    def test_top_n_by_delta(self, tmp_path):
        current = tmp_path / "current.files"
        previous = tmp_path / "previous.files"
        save_entries([entry("a", 100), entry("b", 900), entry("c", 300)], current)
        save_entries([entry("a", 0), entry("b", 850), entry("c", 0)], previous)

        report = analyze_growth(current, previous, max_items=2)
        assert report.entries == [entry("c", 300), entry("a", 100)]

    def test_missing_current_snapshot(self, tmp_path):
        previous = tmp_path / "previous.dirs"
        save_entries([entry("x", 1)], previous)

        with pytest.raises(SnapshotError):
            analyze_growth(tmp_path / "current.dirs", previous, max_items=5)
