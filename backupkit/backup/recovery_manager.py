"""Restore and delete operations on recorded backups.

Both look the backup up in the metadata store first and resolve the
archive against the currently configured backup directory.
"""

import logging
import os
from dataclasses import dataclass

from backupkit.audit.action_log import ActionLog
from backupkit.backup.archiver import Archiver, TarArchiver
from backupkit.backup.errors import (
    BackupError,
    BackupNotFoundError,
    ExtractError,
    MetadataStoreError,
    PartialDeleteError,
    ValidationError,
)
from backupkit.config.settings import Configuration
from backupkit.storage.metadata_store import BackupRecord, MetadataStore

logger = logging.getLogger(__name__)


@dataclass
class RestoreResult:
    name: str
    archive_path: str
    target_dir: str


@dataclass
class DeleteResult:
    name: str
    archive_path: str
    archive_existed: bool


class RecoveryManager:
    """Handles restoring and deleting backups listed in the metadata store."""

    def __init__(
        self,
        store: MetadataStore,
        archiver: Archiver | None = None,
        action_log: ActionLog | None = None,
    ):
        self.store = store
        self.archiver = archiver or TarArchiver()
        self.action_log = action_log or ActionLog()

    def list_backups(self) -> list[BackupRecord]:
        records = list(self.store.list_all())
        if records:
            self.action_log.record("Listed all backups.")
        else:
            self.action_log.record("List backups: No backups found.")
        return records

    def lookup(self, name: str, action: str) -> BackupRecord:
        try:
            return self.store.find_by_name(name)
        except BackupNotFoundError:
            self.action_log.error("Attempt to %s non-existent backup %s.", action, name)
            raise

    def restore(self, name: str, target_dir: str, config: Configuration) -> RestoreResult:
        """Extract a recorded archive into an existing directory.

        Files already in ``target_dir`` are overwritten by archive members
        of the same name.
        """
        self.lookup(name, "restore")

        if not os.path.isdir(target_dir):
            self.action_log.error("Restore directory %s does not exist.", target_dir)
            raise ValidationError([target_dir])

        archive_path = os.path.join(config.backup_dir, name)
        if not os.path.isfile(archive_path):
            logger.warning("Archive for %s missing from %s", name, config.backup_dir)
            self.action_log.error("Restore failed for %s.", name)
            raise ExtractError(f"Archive file {archive_path} is missing")

        if not self.archiver.extract(archive_path, target_dir):
            self.action_log.error("Restore failed for %s.", name)
            raise ExtractError(f"Restore failed for {name}")

        self.action_log.record("Backup %s restored to %s successfully.", name, target_dir)
        return RestoreResult(name=name, archive_path=archive_path, target_dir=target_dir)

    def delete(self, name: str, config: Configuration) -> DeleteResult:
        """Remove the archive file, then its metadata record.

        The file goes first so a failure keeps the record around for a retry.
        """
        self.lookup(name, "delete")

        archive_path = os.path.join(config.backup_dir, name)
        existed = True
        try:
            os.remove(archive_path)
        except FileNotFoundError:
            existed = False
            logger.info("Archive %s already absent", archive_path)
        except OSError as exc:
            self.action_log.error("Could not remove archive for %s: %s", name, exc)
            raise BackupError(f"Could not remove {archive_path}: {exc}") from exc

        try:
            self.store.delete_by_name(name)
        except (MetadataStoreError, BackupNotFoundError) as exc:
            self.action_log.error(
                "Backup %s archive removed but metadata update failed: %s", name, exc
            )
            raise PartialDeleteError(name, exc) from exc

        self.action_log.record("Backup %s deleted successfully.", name)
        return DeleteResult(name=name, archive_path=archive_path, archive_existed=existed)
