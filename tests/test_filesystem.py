"""Tests for filesystem boundary detection."""

from unittest.mock import patch

from diskeaters.filesystem import crosses_boundary, get_device, is_on_different_filesystem


class TestGetDevice:
    def test_existing_path(self, tmp_path):
        assert isinstance(get_device(tmp_path), int)

    def test_missing_path(self, tmp_path):
        assert get_device(tmp_path / "missing") is None


class TestIsOnDifferentFilesystem:
    def test_same_directory_tree(self, tmp_path):
        sub = tmp_path / "sub"
        sub.mkdir()
        assert is_on_different_filesystem(tmp_path, sub) is False

    def test_different_devices(self, tmp_path):
        with patch("diskeaters.filesystem.get_device", side_effect=[1, 2]):
            assert is_on_different_filesystem(tmp_path, tmp_path / "x") is True

    def test_unreadable_path_is_not_a_boundary(self, tmp_path):
        """If a path cannot be stat'ed, traversal continues."""
        assert is_on_different_filesystem(tmp_path, tmp_path / "missing") is False
        assert is_on_different_filesystem(tmp_path / "missing", tmp_path) is False


class TestCrossesBoundary:
    def test_unknown_root_device(self, tmp_path):
        assert crosses_boundary(None, tmp_path) is False

    def test_same_device(self, tmp_path):
        assert crosses_boundary(get_device(tmp_path), tmp_path) is False

    def test_other_device(self, tmp_path):
        assert crosses_boundary(-1, tmp_path) is True
