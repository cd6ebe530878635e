"""Backup and atomic replacement of a destination file.

Order: backup first (must succeed), destination second.

The destination is shared with external readers, so it is never truncated
and rewritten in place. New content goes to a temp file in the same
directory and is renamed over the destination with os.replace(). A reader
sees either the complete old file or the complete new one.
"""

import logging
import os
import stat
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from fragment_sync.errors import BackupFailed, WriteError

logger = logging.getLogger(__name__)

TEMP_SUFFIX = ".tmp"


@dataclass
class ReplaceResult:
    """Result of a backup-and-replace operation."""

    bytes_written: int
    backup_created: bool
    backup_path: Optional[Path] = None


def temp_prefix(path: Path) -> str:
    """Prefix of temp files staged next to path (hidden, never a fragment)."""
    return f".{path.name}."


def _fsync_directory(directory: Path) -> None:
    """Persist a rename by syncing its directory entry (POSIX only)."""
    if os.name == "nt":
        return
    try:
        fd = os.open(directory, os.O_RDONLY)
    except OSError as e:
        logger.warning(f"Could not open {directory} for fsync: {e}")
        return
    try:
        os.fsync(fd)
    except OSError as e:
        logger.warning(f"Directory fsync failed for {directory}: {e}")
    finally:
        os.close(fd)


def resolve_destination(path: Union[str, Path]) -> Path:
    """Follow symlinks so a linked destination is replaced at its target.

    os.replace() over the link itself would swap it for a regular file.
    """
    return Path(os.path.realpath(path))


def _file_mode(path: Path) -> Optional[int]:
    try:
        return stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        return None


def atomic_write_bytes(
    path: Union[str, Path],
    data: bytes,
    fsync: bool = True,
    mode: Optional[int] = None,
) -> int:
    """Write data to path via a temp file and an atomic rename.

    The temp file is created with mode 0o600; pass mode to apply other
    permission bits before the rename. On any failure the temp file is
    removed and path keeps its previous content.

    Args:
        path: Final location
        data: Bytes to write
        fsync: fsync the temp file before and the directory after the rename
        mode: Permission bits for the new file

    Returns:
        Number of bytes written

    Raises:
        OSError: If any step fails
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(
        dir=path.parent, prefix=temp_prefix(path), suffix=TEMP_SUFFIX
    )
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            if fsync:
                os.fsync(f.fileno())
        if mode is not None:
            os.chmod(tmp_name, mode)
        os.replace(tmp_name, path)
    except BaseException:
        try:
            os.unlink(tmp_name)
        except FileNotFoundError:
            pass
        raise

    if fsync:
        _fsync_directory(path.parent)

    return len(data)


def backup_and_replace(
    destination: Union[str, Path],
    backup_path: Union[str, Path],
    candidate: bytes,
    fsync: bool = True,
) -> ReplaceResult:
    """Back up the destination, then atomically replace it with candidate.

    BACKUP FIRST (must succeed), DESTINATION SECOND.

    Args:
        destination: File to replace (may not exist yet). A symlink is
                     followed and its target replaced; the link stays.
        backup_path: Where the current destination bytes are copied;
                     any previous backup there is overwritten
        candidate: New destination content
        fsync: Flush writes to stable storage

    Returns:
        ReplaceResult with operation details

    Raises:
        BackupFailed: If the backup couldn't be written; destination untouched
        WriteError: If the replacement failed; destination keeps old content
    """
    destination = resolve_destination(destination)
    backup_path = Path(backup_path)
    result = ReplaceResult(bytes_written=0, backup_created=False)

    try:
        mode = _file_mode(destination)
    except OSError as e:
        logger.error(f"Could not stat {destination}: {e}")
        raise BackupFailed(backup_path, str(e)) from e

    # STEP 1: Snapshot the current destination - MUST succeed
    if mode is not None:
        try:
            current = destination.read_bytes()
            atomic_write_bytes(backup_path, current, fsync=fsync, mode=mode)
        except OSError as e:
            logger.error(f"Backup of {destination} failed: {e}")
            raise BackupFailed(backup_path, str(e)) from e
        result.backup_created = True
        result.backup_path = backup_path
        logger.debug(f"Backed up {len(current)} bytes to {backup_path}")
    else:
        logger.debug(f"No existing {destination}, nothing to back up")

    # STEP 2: Swap in the candidate
    try:
        result.bytes_written = atomic_write_bytes(
            destination, candidate, fsync=fsync, mode=mode
        )
    except OSError as e:
        logger.error(f"Replacing {destination} failed: {e}")
        raise WriteError(destination, str(e)) from e

    logger.debug(f"Wrote {result.bytes_written} bytes to {destination}")
    return result
