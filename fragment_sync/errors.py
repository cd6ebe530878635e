"""Exceptions raised by the fragment synchronizer.

Every error is scoped to one category. The Synchronizer catches SyncError
subclasses per category, records them on the outcome and moves on.
"""

from pathlib import Path
from typing import Optional


class SyncError(Exception):
    """Base class for all synchronizer errors."""

    def __init__(self, message: str, category: Optional[str] = None):
        super().__init__(message)
        self.category = category


class DirectoryNotFound(SyncError):
    """A configured fragment directory is missing."""

    def __init__(self, path: Path):
        super().__init__(f"Fragment directory not found: {path}")
        self.path = Path(path)


class DuplicateSectionError(SyncError):
    """Two fragments of one category define the same section identifier."""

    def __init__(self, identifier: str, first_file: Path, second_file: Path):
        super().__init__(
            f"Duplicate section [{identifier}] in {second_file} "
            f"(first defined in {first_file})"
        )
        self.identifier = identifier
        self.first_file = Path(first_file)
        self.second_file = Path(second_file)


class ReadError(SyncError):
    """A fragment or destination file could not be read."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to read {path}: {reason}")
        self.path = Path(path)
        self.reason = reason


class BackupFailed(SyncError):
    """The destination could not be copied to its backup location."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Backup to {path} failed: {reason}")
        self.path = Path(path)
        self.reason = reason


class WriteError(SyncError):
    """The candidate could not be written or renamed into place."""

    def __init__(self, path: Path, reason: str):
        super().__init__(f"Failed to write {path}: {reason}")
        self.path = Path(path)
        self.reason = reason


class VerificationError(SyncError):
    """The destination does not hold the expected bytes after a write."""

    def __init__(self, path: Path, expected: str, actual: Optional[str]):
        super().__init__(
            f"Verification failed for {path}: expected {expected}, got {actual}"
        )
        self.path = Path(path)
        self.expected = expected
        self.actual = actual


class BackupNotFound(SyncError):
    """A restore was requested but no backup exists."""

    def __init__(self, path: Path):
        super().__init__(f"No backup found at {path}")
        self.path = Path(path)
