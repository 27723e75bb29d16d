"""Tests for the command-line launcher."""

import json

import pytest

import run
from backupkit.config import settings


@pytest.fixture
def config_file(tmp_path, sources, backup_dir):
    path = tmp_path / "config.json"
    path.write_text(json.dumps({
        "backup": {"source_directories": sources, "backup_directory": backup_dir},
        "metadata": {"path": str(tmp_path / "meta.txt")},
        "logging": {"path": str(tmp_path / "actions.log")},
    }))
    return str(path)


class TestLauncher:
    def test_list_empty(self, config_file, tmp_path, capsys):
        assert run.main(["-c", config_file, "--list"]) == 0
        assert "No backups found." in capsys.readouterr().out
        assert (tmp_path / "meta.txt").exists()
        assert (tmp_path / "actions.log").exists()

    def test_create_failure_exit_status(self, tmp_path, capsys, monkeypatch):
        monkeypatch.setattr(settings, "DEFAULT_CONFIG", tmp_path / "absent.json")
        code = run.main([
            "--metadata-file", str(tmp_path / "meta.txt"),
            "--log-file", str(tmp_path / "actions.log"),
            "--create",
        ])
        assert code == 1
        assert "Error:" in capsys.readouterr().err

    def test_missing_explicit_config(self, tmp_path):
        with pytest.raises(SystemExit):
            run.main(["-c", str(tmp_path / "nope.json"), "--list"])

    def test_create_and_list_are_exclusive(self):
        with pytest.raises(SystemExit):
            run.build_parser().parse_args(["--create", "--list"])

    def test_reserved_character_in_config(self, tmp_path, backup_dir):
        path = tmp_path / "config.json"
        path.write_text(json.dumps({
            "backup": {"source_directories": [str(tmp_path / "a:b")],
                       "backup_directory": backup_dir},
        }))
        with pytest.raises(SystemExit):
            run.main(["-c", str(path), "--list"])
