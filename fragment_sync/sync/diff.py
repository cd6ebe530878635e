"""Byte-exact difference detection between a candidate and its destination."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from fragment_sync.errors import ReadError

logger = logging.getLogger(__name__)


@dataclass
class DiffResult:
    """Verdict of comparing a candidate buffer with a destination file.

    Attributes:
        different: True if any byte differs (or the lengths do)
        destination_exists: Whether the destination was present
        candidate_size: Length of the candidate in bytes
        destination_size: Length of the destination in bytes (0 if absent)
    """
    different: bool
    destination_exists: bool
    candidate_size: int
    destination_size: int


def contents_differ(candidate: bytes, current: bytes) -> bool:
    """Full equality check: length first, then bytes in sequence.

    Whitespace and line-ending differences count.
    """
    if len(candidate) != len(current):
        return True
    # bytes equality compares in order and stops at the first mismatch
    return candidate != current


def read_destination(destination: Union[str, Path]) -> Optional[bytes]:
    """Read the destination's bytes, or None if it doesn't exist.

    Raises:
        ReadError: If the destination exists but can't be read
    """
    destination = Path(destination)
    try:
        return destination.read_bytes()
    except FileNotFoundError:
        return None
    except OSError as e:
        raise ReadError(destination, str(e)) from e


def detect_difference(candidate: bytes, destination: Union[str, Path]) -> DiffResult:
    """Compare a candidate buffer with the destination's current bytes.

    An absent destination compares as empty.

    Raises:
        ReadError: If the destination exists but can't be read
    """
    current = read_destination(destination)
    exists = current is not None
    if current is None:
        current = b""

    result = DiffResult(
        different=contents_differ(candidate, current),
        destination_exists=exists,
        candidate_size=len(candidate),
        destination_size=len(current),
    )
    logger.debug(
        f"Compared {result.candidate_size} candidate bytes with "
        f"{result.destination_size} bytes at {destination}: "
        f"{'different' if result.different else 'identical'}"
    )
    return result
