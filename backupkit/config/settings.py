"""Backup system configuration: compiled-in defaults and runtime changes."""

import json
import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path

from backupkit.backup.errors import ValidationError
from backupkit.backup.validator import find_unstorable_paths, validate_directories

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_CONFIG = PROJECT_ROOT / "config" / "config.json"

# Default source and backup directories (modify as needed)
DEFAULT_SOURCE_DIRS = ("/path/to/source1", "/path/to/source2")
DEFAULT_BACKUP_DIR = "/path/to/backup"

DEFAULT_METADATA_FILE = "backup_metadata.txt"
DEFAULT_LOG_FILE = "backup_management.log"

# Archives older than this many whole days are pruned after each backup
RETENTION_DAYS = 7

# Warn before archiving when the backup volume has less free space (0 disables)
MIN_FREE_MB = 0

ARCHIVE_PREFIX = "backup_"
ARCHIVE_SUFFIX = ".tar.gz"
ARCHIVE_GLOB = f"{ARCHIVE_PREFIX}*{ARCHIVE_SUFFIX}"

# Timestamp format used in archive names and metadata records
NAME_TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"


@dataclass(frozen=True)
class Configuration:
    """Directories and retention window used by a backup run."""
    source_dirs: tuple[str, ...] = DEFAULT_SOURCE_DIRS
    backup_dir: str = DEFAULT_BACKUP_DIR
    retention_days: int = RETENTION_DAYS
    min_free_mb: int = MIN_FREE_MB


def _is_day_count(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


class ConfigurationHolder:
    """Owns the active configuration for one session.

    Changes go through :meth:`reconfigure`, which validates every supplied
    field before committing any of them.
    """

    def __init__(self, initial: Configuration | None = None):
        self._current = initial or Configuration()

    @property
    def current(self) -> Configuration:
        return self._current

    def reconfigure(
        self,
        new_sources=None,
        new_backup_dir: str | None = None,
        new_retention_days: int | None = None,
    ) -> Configuration:
        """Validate and commit new settings.

        Raises ValidationError listing every rejected value; the previous
        configuration is kept in that case.
        """
        updates = {}

        if new_sources is not None:
            sources = tuple(new_sources)
            if not sources:
                raise ValidationError([], "At least one source directory is required.")
            invalid = validate_directories(sources).missing
            invalid += [p for p in find_unstorable_paths(sources) if p not in invalid]
            if invalid:
                logger.warning("Rejected source directories: %s", invalid)
                raise ValidationError(invalid)
            updates["source_dirs"] = sources

        if new_retention_days is not None:
            if not _is_day_count(new_retention_days):
                raise ValidationError(
                    [], f"Retention days must be a non-negative integer: {new_retention_days!r}"
                )
            updates["retention_days"] = new_retention_days

        if new_backup_dir is not None:
            if find_unstorable_paths([new_backup_dir]):
                raise ValidationError([new_backup_dir])
            try:
                os.makedirs(new_backup_dir, exist_ok=True)
            except OSError as exc:
                logger.warning("Cannot create backup directory %s: %s", new_backup_dir, exc)
                raise ValidationError(
                    [new_backup_dir],
                    f"Could not create or access {new_backup_dir}.",
                ) from exc
            updates["backup_dir"] = new_backup_dir

        if updates:
            self._current = replace(self._current, **updates)
            logger.info("Configuration updated: %s", ", ".join(sorted(updates)))
        return self._current


# ----------------------------------------------------------------------
# Config file
# ----------------------------------------------------------------------

def _expand(path_str: str) -> str:
    return os.path.expanduser(os.path.expandvars(path_str))


def load_config(config_path: str | None = None) -> dict:
    """Load the JSON config file.

    A missing explicitly named file is an error; a missing default file
    yields an empty dict so the compiled-in defaults apply.
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG
    if not path.exists():
        if config_path:
            raise FileNotFoundError(f"Config file not found: {config_path}")
        logger.debug("No config file at %s, using defaults", path)
        return {}
    with open(path) as f:
        return json.load(f)


def configuration_from_dict(data: dict) -> Configuration:
    """Build a Configuration from a loaded config file.

    Raises ValidationError if a directory contains a metadata delimiter.
    """
    backup_cfg = data.get("backup", {})
    sources = backup_cfg.get("source_directories")
    source_dirs = tuple(_expand(s) for s in sources) if sources else DEFAULT_SOURCE_DIRS
    backup_dir = _expand(backup_cfg.get("backup_directory", DEFAULT_BACKUP_DIR))
    unstorable = find_unstorable_paths((*source_dirs, backup_dir))
    if unstorable:
        raise ValidationError(
            unstorable, "Config paths may not contain ':' or ',': " + ", ".join(unstorable)
        )
    return Configuration(
        source_dirs=source_dirs,
        backup_dir=backup_dir,
        retention_days=int(backup_cfg.get("retention_days", RETENTION_DAYS)),
        min_free_mb=int(backup_cfg.get("min_free_mb", MIN_FREE_MB)),
    )


def metadata_path_from_dict(data: dict) -> str:
    return _expand(data.get("metadata", {}).get("path", DEFAULT_METADATA_FILE))


def log_path_from_dict(data: dict) -> str:
    return _expand(data.get("logging", {}).get("path", DEFAULT_LOG_FILE))
