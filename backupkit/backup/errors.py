"""Error hierarchy for backup operations."""


class BackupError(RuntimeError):
    """Base exception for backup related failures."""


class ValidationError(BackupError):
    """Raised when one or more required directories are missing or invalid."""

    def __init__(self, missing: list[str], message: str | None = None):
        self.missing = list(missing)
        super().__init__(
            message or "Invalid or missing directories: " + ", ".join(self.missing)
        )


class ArchiveError(BackupError):
    """Raised when the archive tool fails to create a backup."""


class ExtractError(BackupError):
    """Raised when the archive tool fails to extract a backup."""


class BackupNotFoundError(BackupError):
    """Raised when no metadata record matches a backup name."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Backup {name} not found.")


class MetadataStoreError(BackupError):
    """Raised when the metadata store file cannot be read or written."""


class PartialDeleteError(BackupError):
    """Archive file was removed but its metadata record could not be."""

    def __init__(self, name: str, cause: Exception):
        self.name = name
        self.cause = cause
        super().__init__(
            f"Backup {name} archive removed but metadata record remains: {cause}"
        )
