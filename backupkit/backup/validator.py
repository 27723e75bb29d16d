"""Directory validation and pre-flight checks.

Every path is checked so callers can report all missing directories at
once instead of stopping at the first.
"""

import logging
import os
from dataclasses import dataclass, field

import psutil

from backupkit.storage.metadata_store import FIELD_DELIMITER, SOURCE_DELIMITER

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Outcome of a directory check."""
    missing: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing


def validate_directories(paths) -> ValidationResult:
    """Return every path in ``paths`` that is not an existing directory."""
    return ValidationResult(missing=[p for p in paths if not os.path.isdir(p)])


def find_unstorable_paths(paths) -> list[str]:
    """Paths containing a metadata delimiter cannot be recorded faithfully."""
    return [
        p for p in paths
        if FIELD_DELIMITER in p or SOURCE_DELIMITER in p or "\n" in p
    ]


def free_space_mb(path: str) -> int | None:
    """Free space on the volume holding ``path`` in MiB, or None if unknown."""
    try:
        return psutil.disk_usage(path).free // (1024 * 1024)
    except OSError:
        logger.debug("Could not read disk usage for %s", path)
        return None


def has_free_space(path: str, min_free_mb: int) -> bool:
    """True unless the volume is known to have less than ``min_free_mb`` free.

    A threshold of 0 disables the check.
    """
    if min_free_mb <= 0:
        return True
    free = free_space_mb(path)
    if free is None:
        return True
    return free >= min_free_mb
