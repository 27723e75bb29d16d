"""Append-only action log.

Each significant action or error becomes one line::

    2025-05-14 15:10:22 - Backup created successfully: backup_20250514_151022.tar.gz

The file is written through a dedicated stdlib logger so the same entries
also reach the console handlers configured by the launcher.
"""

import logging
from pathlib import Path

ACTION_LOGGER_NAME = "backupkit.actions"
ACTION_LOG_FORMAT = "%(asctime)s - %(message)s"
ACTION_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class ActionLog:
    """Writes timestamped action lines to a log file."""

    def __init__(self, log_path: str | None = None, name: str = ACTION_LOGGER_NAME):
        self._logger = logging.getLogger(name)
        self._logger.setLevel(logging.INFO)
        self._handler: logging.Handler | None = None
        self.log_path = Path(log_path) if log_path else None
        if self.log_path is not None:
            self.log_path.parent.mkdir(parents=True, exist_ok=True)
            self._handler = logging.FileHandler(str(self.log_path), encoding="utf-8")
            self._handler.setFormatter(
                logging.Formatter(ACTION_LOG_FORMAT, datefmt=ACTION_LOG_DATEFMT)
            )
            self._logger.addHandler(self._handler)

    def record(self, message: str, *args):
        self._logger.info(message, *args)

    def error(self, message: str, *args):
        self._logger.error("ERROR: " + message, *args)

    def close(self):
        if self._handler is not None:
            self._logger.removeHandler(self._handler)
            self._handler.close()
            self._handler = None
