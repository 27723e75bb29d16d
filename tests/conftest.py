"""Shared fixtures: an in-process archiver and a throwaway backup layout."""

import os
from datetime import datetime
from pathlib import Path

import pytest

from backupkit.audit.action_log import ActionLog
from backupkit.config.settings import Configuration
from backupkit.storage.metadata_store import MetadataStore


class FakeArchiver:
    """Keeps archive contents in memory and writes a placeholder file.

    ``fail_archive`` / ``fail_extract`` simulate a non-zero tool exit.
    """

    def __init__(self):
        self.fail_archive = False
        self.fail_extract = False
        self.archive_calls: list[tuple[list[str], str]] = []
        self.extract_calls: list[tuple[str, str]] = []
        self._contents: dict[str, dict[str, bytes]] = {}

    def archive(self, source_dirs, dest_path):
        self.archive_calls.append((list(source_dirs), dest_path))
        # A failing tool may still leave a partial output file behind
        Path(dest_path).write_bytes(b"partial" if self.fail_archive else b"fake-archive")
        if self.fail_archive:
            return False
        files: dict[str, bytes] = {}
        for src in source_dirs:
            for root, _dirs, names in os.walk(src):
                for n in names:
                    full = os.path.join(root, n)
                    files[os.path.relpath(full, src)] = Path(full).read_bytes()
        self._contents[dest_path] = files
        return True

    def extract(self, archive_path, dest_dir):
        self.extract_calls.append((archive_path, dest_dir))
        if self.fail_extract or archive_path not in self._contents:
            return False
        for rel, data in self._contents[archive_path].items():
            target = Path(dest_dir) / rel
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        return True


FIXED_NOW = datetime(2025, 5, 14, 15, 10, 22)
FIXED_NAME = "backup_20250514_151022.tar.gz"


@pytest.fixture
def fake_archiver():
    return FakeArchiver()


@pytest.fixture
def sources(tmp_path):
    a = tmp_path / "src_a"
    b = tmp_path / "src_b"
    a.mkdir()
    b.mkdir()
    (a / "one.txt").write_text("file one")
    (b / "nested").mkdir()
    (b / "nested" / "two.bin").write_bytes(b"\x00\x01\x02two")
    return [str(a), str(b)]


@pytest.fixture
def backup_dir(tmp_path):
    d = tmp_path / "backups"
    d.mkdir()
    return str(d)


@pytest.fixture
def config(sources, backup_dir):
    return Configuration(source_dirs=tuple(sources), backup_dir=backup_dir, retention_days=7)


@pytest.fixture
def store(tmp_path):
    s = MetadataStore(str(tmp_path / "backup_metadata.txt"))
    s.ensure_exists()
    return s


@pytest.fixture
def action_log(tmp_path):
    log = ActionLog(str(tmp_path / "backup_management.log"))
    yield log
    log.close()
