"""Interactive menu for the backup manager.

Reads numbered commands until the user exits. Input and output functions
are injectable so the loop can be driven from tests.
"""

import logging
from typing import Callable

from backupkit.audit.action_log import ActionLog
from backupkit.backup.backup_manager import BackupManager
from backupkit.backup.errors import BackupError, PartialDeleteError
from backupkit.backup.recovery_manager import RecoveryManager
from backupkit.config.settings import ConfigurationHolder

logger = logging.getLogger(__name__)

MENU = """=================================
   Backup Management System
=================================
1. Create Backup
2. List Backups
3. Restore Backup
4. Delete Backup
5. Configure Source/Backup Directories
6. Exit
=================================
Enter your choice (1-6): """

NAME_EXAMPLE = "backup_20250514_151022.tar.gz"


class BackupMenu:
    """Dispatches menu choices to the orchestrators."""

    def __init__(
        self,
        holder: ConfigurationHolder,
        backup_manager: BackupManager,
        recovery: RecoveryManager,
        action_log: ActionLog,
        input_fn: Callable[[str], str] = input,
        output: Callable[[str], None] = print,
    ):
        self.holder = holder
        self.backup = backup_manager
        self.recovery = recovery
        self.action_log = action_log
        self._input = input_fn
        self._out = output
        self._handlers = {
            "1": self.create_backup,
            "2": self.list_backups,
            "3": self.restore_backup,
            "4": self.delete_backup,
            "5": self.configure_directories,
        }

    def _ask(self, prompt: str) -> str:
        return self._input(prompt).strip()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def create_backup(self):
        self._out("Creating backup...")
        config = self.holder.current
        try:
            name = self.backup.create_backup(config)
        except BackupError as exc:
            self._out(f"Error: {exc}")
            return
        self._out(f"Backup created successfully: {config.backup_dir}/{name}")

    def list_backups(self):
        try:
            records = self.recovery.list_backups()
        except BackupError as exc:
            self._out(f"Error: {exc}")
            return
        if not records:
            self._out("No backups found.")
            return
        self._out("Backup Name | Source Directories | Timestamp")
        self._out("----------------------------------------")
        for r in records:
            self._out(f"{r.name} | {','.join(r.sources)} | {r.created_at}")

    def restore_backup(self):
        name = self._ask(f"Enter Backup Name (e.g., {NAME_EXAMPLE}): ")
        try:
            self.recovery.lookup(name, "restore")
        except BackupError as exc:
            self._out(f"Error: {exc}")
            return
        target = self._ask("Enter Restore Directory (where to restore): ")
        try:
            self.recovery.restore(name, target, self.holder.current)
        except BackupError as exc:
            self._out(f"Error: {exc}")
            return
        self._out(f"Backup {name} restored to {target} successfully.")

    def delete_backup(self):
        name = self._ask(f"Enter Backup Name (e.g., {NAME_EXAMPLE}): ")
        try:
            self.recovery.delete(name, self.holder.current)
        except PartialDeleteError as exc:
            self._out(f"Warning: {exc}")
            return
        except BackupError as exc:
            self._out(f"Error: {exc}")
            return
        self._out(f"Backup {name} deleted successfully.")

    def configure_directories(self):
        current = self.holder.current
        self._out(f"Current Source Directories: {' '.join(current.source_dirs)}")
        sources = self._ask(
            "Enter Source Directories (space-separated, leave blank to keep current): "
        )
        backup_dir = self._ask(f"Enter Backup Directory (current: {current.backup_dir}): ")
        retention = self._ask(f"Enter Retention Days (current: {current.retention_days}): ")

        retention_days = None
        if retention:
            try:
                retention_days = int(retention)
            except ValueError:
                self._out(f"Error: Retention days must be a whole number, got {retention}.")
                self.action_log.error("Invalid retention days %s.", retention)
                return

        try:
            updated = self.holder.reconfigure(
                new_sources=sources.split() if sources else None,
                new_backup_dir=backup_dir or None,
                new_retention_days=retention_days,
            )
        except BackupError as exc:
            self._out(f"Error: {exc}")
            self.action_log.error("Configuration rejected: %s", exc)
            return

        if sources:
            self._out(f"Source directories updated: {' '.join(updated.source_dirs)}")
            self.action_log.record(
                "Source directories updated: %s", " ".join(updated.source_dirs)
            )
        if backup_dir:
            self._out(f"Backup directory updated to {updated.backup_dir}.")
            self.action_log.record("Backup directory updated to %s.", updated.backup_dir)
        if retention_days is not None:
            self._out(f"Retention updated to {updated.retention_days} days.")
            self.action_log.record("Retention updated to %d days.", updated.retention_days)

    # ------------------------------------------------------------------
    # Loop
    # ------------------------------------------------------------------

    def run(self):
        """Prompt for commands until exit or end of input."""
        try:
            while True:
                choice = self._ask(MENU)
                if choice == "6":
                    self._out("Exiting...")
                    break
                handler = self._handlers.get(choice)
                if handler is None:
                    self._out("Invalid choice. Please enter a number between 1 and 6.")
                else:
                    handler()
                self._input("Press Enter to continue...")
        except (EOFError, KeyboardInterrupt):
            self._out("")
            logger.info("Input closed, exiting menu")
        self.action_log.record("System exited.")
