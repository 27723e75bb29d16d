"""Tests for directory validation and the free-space preflight."""

from collections import namedtuple

import psutil

from backupkit.backup import validator
from backupkit.backup.validator import (
    find_unstorable_paths,
    has_free_space,
    validate_directories,
)

Usage = namedtuple("Usage", "total used free percent")


class TestValidateDirectories:
    def test_all_present(self, sources):
        result = validate_directories(sources)
        assert result.ok
        assert result.missing == []

    def test_reports_every_missing_path(self, tmp_path, sources):
        a = str(tmp_path / "missing_a")
        b = str(tmp_path / "missing_b")
        result = validate_directories([a, sources[0], b])
        assert not result.ok
        assert result.missing == [a, b]

    def test_file_is_not_a_directory(self, tmp_path):
        f = tmp_path / "plain.txt"
        f.write_text("x")
        assert validate_directories([str(f)]).missing == [str(f)]

    def test_no_side_effects(self, tmp_path):
        validate_directories([str(tmp_path / "new")])
        assert not (tmp_path / "new").exists()


class TestUnstorablePaths:
    def test_delimiters_flagged(self):
        assert find_unstorable_paths(["/ok", "/a:b", "/c,d"]) == ["/a:b", "/c,d"]


class TestFreeSpace:
    def test_disabled_threshold(self, tmp_path):
        assert has_free_space(str(tmp_path), 0) is True

    def test_below_threshold(self, tmp_path, monkeypatch):
        monkeypatch.setattr(
            validator.psutil, "disk_usage",
            lambda path: Usage(100, 99, 5 * 1024 * 1024, 99.0),
        )
        assert has_free_space(str(tmp_path), 10) is False
        assert has_free_space(str(tmp_path), 5) is True

    def test_unreadable_volume_passes(self, tmp_path, monkeypatch):
        def broken(path):
            raise OSError("no such device")

        monkeypatch.setattr(psutil, "disk_usage", broken)
        assert has_free_space(str(tmp_path / "missing"), 10) is True
