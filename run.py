"""Launcher for the Backup Management System.

Starts the interactive menu by default. One-shot flags run a single
command and exit, which suits cron.

Usage:
    python run.py
    python run.py --config config/config.json
    python run.py --create          # one backup, exit status 0/1
    python run.py --list
"""

import argparse
import logging
import os
import sys

from backupkit.audit.action_log import ActionLog
from backupkit.backup.archiver import TarArchiver
from backupkit.backup.backup_manager import BackupManager
from backupkit.backup.errors import BackupError, MetadataStoreError, ValidationError
from backupkit.backup.recovery_manager import RecoveryManager
from backupkit.cli.menu import BackupMenu
from backupkit.config.settings import (
    ConfigurationHolder,
    configuration_from_dict,
    load_config,
    log_path_from_dict,
    metadata_path_from_dict,
)
from backupkit.storage.metadata_store import MetadataStore

logger = logging.getLogger("backupkit")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Backup Management System",
    )
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="Path to config.json (default: config/config.json if present)",
    )
    parser.add_argument(
        "--metadata-file",
        default=None,
        help="Override the metadata store path",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Override the action log path",
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "WARNING"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Console logging level",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--create",
        action="store_true",
        help="Create one backup and exit",
    )
    mode.add_argument(
        "--list",
        action="store_true",
        help="List recorded backups and exit",
    )
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )

    try:
        raw = load_config(args.config)
        initial = configuration_from_dict(raw)
    except (FileNotFoundError, ValidationError) as exc:
        parser.error(str(exc))

    holder = ConfigurationHolder(initial)
    store = MetadataStore(args.metadata_file or metadata_path_from_dict(raw))
    action_log = ActionLog(args.log_file or log_path_from_dict(raw))

    try:
        store.ensure_exists()
    except MetadataStoreError as exc:
        logger.critical("%s", exc)
        action_log.close()
        return 2

    archiver = TarArchiver()
    if not archiver.available():
        logger.warning("tar not found on PATH; backups and restores will fail")

    backup_mgr = BackupManager(store, archiver=archiver, action_log=action_log)
    recovery = RecoveryManager(store, archiver=archiver, action_log=action_log)
    menu = BackupMenu(holder, backup_mgr, recovery, action_log)

    try:
        if args.create:
            try:
                name = backup_mgr.create_backup(holder.current)
            except BackupError as exc:
                print(f"Error: {exc}", file=sys.stderr)
                return 1
            print(f"Backup created successfully: {holder.current.backup_dir}/{name}")
            return 0
        if args.list:
            menu.list_backups()
            return 0
        menu.run()
        return 0
    finally:
        action_log.close()


if __name__ == "__main__":
    sys.exit(main())
