"""Roll a destination back to its single-generation backup."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Union

from fragment_sync.errors import BackupNotFound, ReadError, WriteError
from fragment_sync.sync.replace import atomic_write_bytes, resolve_destination

logger = logging.getLogger(__name__)


@dataclass
class RestoreResult:
    """Result of a restore operation."""

    destination: Path
    backup_path: Path
    bytes_restored: int

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "destination": str(self.destination),
            "backup_path": str(self.backup_path),
            "bytes_restored": self.bytes_restored,
        }


def restore_backup(
    destination: Union[str, Path],
    backup_path: Union[str, Path],
    fsync: bool = True,
) -> RestoreResult:
    """Atomically replace the destination with the backup's bytes.

    The backup itself is left in place.

    Args:
        destination: File to restore (a symlink is followed)
        backup_path: Backup written by a previous replacement
        fsync: Flush writes to stable storage

    Returns:
        RestoreResult with operation details

    Raises:
        BackupNotFound: If there is no backup
        ReadError: If the backup can't be read
        WriteError: If the destination couldn't be replaced
    """
    destination = Path(destination)
    backup_path = Path(backup_path)

    if not backup_path.is_file():
        raise BackupNotFound(backup_path)

    try:
        content = backup_path.read_bytes()
    except OSError as e:
        raise ReadError(backup_path, str(e)) from e

    try:
        written = atomic_write_bytes(
            resolve_destination(destination), content, fsync=fsync
        )
    except OSError as e:
        raise WriteError(destination, str(e)) from e

    logger.info(f"Restored {destination} from {backup_path} ({written} bytes)")
    return RestoreResult(
        destination=destination,
        backup_path=backup_path,
        bytes_restored=written,
    )
