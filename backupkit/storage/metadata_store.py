"""Flat-file metadata store for backup records.

One record per line, UTF-8::

    backup_20250514_151022.tar.gz:/srv/a,/srv/b:20250514_151022

Records are appended in creation order and looked up by linear scan.
Deletion rewrites the file without the matching lines through a temporary
file that is moved into place, so an interrupted rewrite never leaves a
truncated store.
"""

import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path

from backupkit.backup.errors import BackupNotFoundError, MetadataStoreError

logger = logging.getLogger(__name__)

FIELD_DELIMITER = ":"
SOURCE_DELIMITER = ","


@dataclass(frozen=True)
class BackupRecord:
    """Metadata describing a single archive."""
    name: str
    sources: tuple[str, ...]
    created_at: str

    def to_line(self) -> str:
        if not self.sources:
            raise ValueError("A backup record needs at least one source")
        for value in (self.name, self.created_at, *self.sources):
            if FIELD_DELIMITER in value or "\n" in value:
                raise ValueError(f"Delimiter not allowed in record field: {value!r}")
        for src in self.sources:
            if SOURCE_DELIMITER in src:
                raise ValueError(f"Delimiter not allowed in source path: {src!r}")
        return FIELD_DELIMITER.join(
            (self.name, SOURCE_DELIMITER.join(self.sources), self.created_at)
        )

    @classmethod
    def from_line(cls, line: str) -> "BackupRecord | None":
        """Parse one stored line, or return None if it is malformed."""
        parts = line.rstrip("\r\n").split(FIELD_DELIMITER)
        if len(parts) != 3:
            return None
        name, sources, created_at = parts
        source_list = tuple(s for s in sources.split(SOURCE_DELIMITER) if s)
        if not name or not source_list:
            return None
        return cls(name=name, sources=source_list, created_at=created_at)


class _RecordView:
    """Lazy view over the store; every iteration re-reads the file."""

    def __init__(self, store: "MetadataStore"):
        self._store = store

    def __iter__(self):
        return self._store._iter_records()


class MetadataStore:
    """Append-only record file keyed by backup name."""

    def __init__(self, path: str):
        self.path = Path(path)

    def ensure_exists(self):
        """Create the store file (and its directory) if missing."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.touch(exist_ok=True)
        except OSError as exc:
            raise MetadataStoreError(
                f"Cannot create metadata file {self.path}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def append(self, record: BackupRecord):
        line = record.to_line()
        try:
            with open(self.path, "a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError as exc:
            raise MetadataStoreError(
                f"Cannot append to metadata file {self.path}: {exc}"
            ) from exc
        logger.debug("Appended metadata record %s", record.name)

    def delete_by_name(self, name: str):
        """Remove every line keyed by ``name``.

        Malformed lines are carried over untouched.
        """
        prefix = name + FIELD_DELIMITER
        kept: list[str] = []
        removed = 0
        for line in self._read_lines():
            if line.startswith(prefix):
                removed += 1
            else:
                kept.append(line)
        if not removed:
            raise BackupNotFoundError(name)

        self._atomic_write(kept)
        logger.debug("Removed %d metadata line(s) for %s", removed, name)

    def _atomic_write(self, lines: list[str]):
        directory = self.path.parent
        try:
            fd, tmp = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=str(directory)
            )
        except OSError as exc:
            raise MetadataStoreError(
                f"Cannot rewrite metadata file {self.path}: {exc}"
            ) from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                for line in lines:
                    f.write(line + "\n")
            if self.path.exists():
                os.chmod(tmp, stat.S_IMODE(self.path.stat().st_mode))
            os.replace(tmp, self.path)
        except OSError as exc:
            try:
                os.remove(tmp)
            except OSError:
                pass
            raise MetadataStoreError(
                f"Cannot rewrite metadata file {self.path}: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def _read_lines(self) -> list[str]:
        if not self.path.exists():
            return []
        try:
            with open(self.path, encoding="utf-8") as f:
                return [line.rstrip("\r\n") for line in f if line.strip()]
        except OSError as exc:
            raise MetadataStoreError(
                f"Cannot read metadata file {self.path}: {exc}"
            ) from exc

    def _iter_records(self):
        if not self.path.exists():
            return
        try:
            with open(self.path, encoding="utf-8") as f:
                for lineno, line in enumerate(f, start=1):
                    if not line.strip():
                        continue
                    record = BackupRecord.from_line(line)
                    if record is None:
                        logger.warning(
                            "Skipping malformed metadata line %d in %s", lineno, self.path,
                        )
                        continue
                    yield record
        except OSError as exc:
            raise MetadataStoreError(
                f"Cannot read metadata file {self.path}: {exc}"
            ) from exc

    def list_all(self) -> _RecordView:
        """All records in file order. The view can be iterated repeatedly."""
        return _RecordView(self)

    def find_by_name(self, name: str) -> BackupRecord:
        for record in self._iter_records():
            if record.name == name:
                return record
        raise BackupNotFoundError(name)
