"""Tests for the timestamped action log sink."""

import re

from backupkit.audit.action_log import ActionLog

LINE = re.compile(r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} - (.*)$")


class TestActionLog:
    def test_line_format(self, tmp_path):
        log = ActionLog(str(tmp_path / "actions.log"), name="test.actions.format")
        log.record("Backup created successfully: %s", "backup_1.tar.gz")
        log.error("Restore failed for %s.", "backup_1.tar.gz")
        log.close()

        lines = (tmp_path / "actions.log").read_text().splitlines()
        messages = [LINE.match(line).group(1) for line in lines]
        assert messages == [
            "Backup created successfully: backup_1.tar.gz",
            "ERROR: Restore failed for backup_1.tar.gz.",
        ]

    def test_appends_across_instances(self, tmp_path):
        path = tmp_path / "actions.log"
        for msg in ("first", "second"):
            log = ActionLog(str(path), name="test.actions.append")
            log.record(msg)
            log.close()
        assert len(path.read_text().splitlines()) == 2

    def test_closed_log_stops_writing(self, tmp_path):
        path = tmp_path / "actions.log"
        log = ActionLog(str(path), name="test.actions.closed")
        log.close()
        log.record("dropped")
        assert path.read_text() == ""

    def test_without_file(self):
        log = ActionLog(name="test.actions.nofile")
        log.record("console only")
        assert log.log_path is None
