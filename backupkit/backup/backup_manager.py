"""Backup orchestration.

Validates the configured directories, archives every source directory into
one timestamped bundle, records it in the metadata store and then prunes
archives that have aged out of the retention window.
"""

import logging
import os
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable

from backupkit.audit.action_log import ActionLog
from backupkit.backup.archiver import Archiver, TarArchiver
from backupkit.backup.errors import ArchiveError, MetadataStoreError, ValidationError
from backupkit.backup.validator import (
    find_unstorable_paths,
    free_space_mb,
    has_free_space,
    validate_directories,
)
from backupkit.config.settings import (
    ARCHIVE_GLOB,
    ARCHIVE_PREFIX,
    ARCHIVE_SUFFIX,
    NAME_TIMESTAMP_FORMAT,
    Configuration,
)
from backupkit.storage.metadata_store import BackupRecord, MetadataStore

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400


@dataclass
class RetentionSummary:
    removed: list[str] = field(default_factory=list)
    kept: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


def archive_name(ts: datetime) -> str:
    return f"{ARCHIVE_PREFIX}{ts.strftime(NAME_TIMESTAMP_FORMAT)}{ARCHIVE_SUFFIX}"


class BackupManager:
    """High-level backup orchestrator.

    Usage::

        mgr = BackupManager(MetadataStore("backup_metadata.txt"))
        name = mgr.create_backup(Configuration(("/srv/a", "/srv/b"), "/backups"))
    """

    def __init__(
        self,
        store: MetadataStore,
        archiver: Archiver | None = None,
        action_log: ActionLog | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.store = store
        self.archiver = archiver or TarArchiver()
        self.action_log = action_log or ActionLog()
        self._clock = clock

    def validate(self, config: Configuration):
        """Raise ValidationError naming every missing or unrecordable directory."""
        missing = []
        for src in validate_directories(config.source_dirs).missing:
            self.action_log.error("Source directory %s does not exist.", src)
            missing.append(src)
        for src in find_unstorable_paths(config.source_dirs):
            if src not in missing:
                self.action_log.error("Source directory %s contains a reserved character.", src)
                missing.append(src)
        if not os.path.isdir(config.backup_dir):
            self.action_log.error("Backup directory %s does not exist.", config.backup_dir)
            missing.append(config.backup_dir)
        if missing:
            raise ValidationError(missing)

    def create_backup(self, config: Configuration) -> str:
        """Create one archive of all source dirs and return its name."""
        self.validate(config)

        ts = self._clock()
        name = archive_name(ts)
        backup_dir = Path(config.backup_dir)
        backup_dir.mkdir(parents=True, exist_ok=True)
        dest = backup_dir / name

        if not has_free_space(str(backup_dir), config.min_free_mb):
            logger.warning(
                "Backup volume for %s has %s MiB free, below the %d MiB threshold",
                backup_dir, free_space_mb(str(backup_dir)), config.min_free_mb,
            )
            self.action_log.record(
                "WARNING: Low free space on backup volume for %s.", backup_dir
            )

        logger.info("Creating backup %s from %d source(s)", name, len(config.source_dirs))
        if not self.archiver.archive(list(config.source_dirs), str(dest)):
            self._discard_partial(dest)
            self.action_log.error("Backup creation failed for %s.", name)
            raise ArchiveError(f"Backup creation failed for {name}")

        try:
            self.store.append(BackupRecord(
                name=name,
                sources=tuple(config.source_dirs),
                created_at=ts.strftime(NAME_TIMESTAMP_FORMAT),
            ))
        except MetadataStoreError:
            self._discard_partial(dest)
            self.action_log.error("Backup creation failed for %s: metadata not written.", name)
            raise
        self.action_log.record("Backup created successfully: %s", name)

        try:
            summary = self.enforce_retention(config, keep=name)
        except OSError as exc:
            logger.error("Retention cleanup failed in %s: %s", backup_dir, exc)
            self.action_log.error("Failed to clean up old backups.")
        else:
            if summary.failed:
                self.action_log.error("Failed to clean up old backups.")
            else:
                self.action_log.record(
                    "Cleaned up backups older than %d days.", config.retention_days
                )
        return name

    @staticmethod
    def _discard_partial(dest: Path):
        try:
            dest.unlink()
        except FileNotFoundError:
            pass
        except OSError as exc:
            logger.warning("Could not remove partial archive %s: %s", dest, exc)

    def enforce_retention(
        self,
        config: Configuration,
        keep: str | None = None,
        now: float | None = None,
    ) -> RetentionSummary:
        """Delete archives whose whole-day age exceeds the retention window.

        Age comes from the file modification time. Metadata records of pruned
        archives are left in place.
        """
        now = time.time() if now is None else now
        summary = RetentionSummary()
        for path in sorted(Path(config.backup_dir).glob(ARCHIVE_GLOB)):
            if not path.is_file():
                continue
            if path.name == keep:
                summary.kept.append(path.name)
                continue
            try:
                age_days = int((now - path.stat().st_mtime) // SECONDS_PER_DAY)
                if age_days <= config.retention_days:
                    summary.kept.append(path.name)
                    continue
                path.unlink()
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.error("Could not prune %s: %s", path, exc)
                summary.failed.append(path.name)
                continue
            summary.removed.append(path.name)

        if summary.removed:
            logger.info("Retention cleanup: removed %d old backup(s)", len(summary.removed))
        return summary
