"""Hash-based integrity checks for destination files.

verify_destination() confirms a write landed intact; check_category()
reports drift between a category's fragments and its destination without
touching either.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Union

from fragment_sync.config import CategoryConfig
from fragment_sync.errors import SyncError
from fragment_sync.sync.discovery import discover_fragments
from fragment_sync.sync.merge import load_fragments, merge_fragments
from fragment_sync.utils.hashing import fast_hash_file, hash_bytes


@dataclass
class IntegrityResult:
    """Result of integrity verification.

    Attributes:
        path: Destination that was checked
        exists: Whether the destination is present
        expected_hash: Digest of the expected content
        actual_hash: Digest of the destination (absent counts as empty)
        fragment_count: Fragments merged to build the expectation
        errors: Problems that prevented a verdict
    """
    path: Path
    exists: bool = False
    expected_hash: Optional[str] = None
    actual_hash: Optional[str] = None
    fragment_count: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        """Check if the destination holds exactly the expected content."""
        return (
            len(self.errors) == 0 and
            self.expected_hash is not None and
            self.expected_hash == self.actual_hash
        )

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        return {
            "path": str(self.path),
            "exists": self.exists,
            "is_valid": self.is_valid,
            "expected_hash": self.expected_hash,
            "actual_hash": self.actual_hash,
            "fragment_count": self.fragment_count,
            "errors": self.errors,
        }


def verify_destination(
    destination: Union[str, Path],
    expected: bytes,
    algorithm: str = "auto",
) -> IntegrityResult:
    """Hash a destination from disk and compare with the digest of expected.

    Args:
        destination: File to check
        expected: Bytes the file should contain
        algorithm: Hash algorithm passed to hash_bytes()

    Returns:
        IntegrityResult; read failures are recorded in errors
    """
    result = IntegrityResult(path=Path(destination))
    result.expected_hash = hash_bytes(expected, algorithm)

    try:
        result.actual_hash = fast_hash_file(destination, algorithm)
        result.exists = True
    except FileNotFoundError:
        result.actual_hash = hash_bytes(b"", algorithm)
    except (OSError, ValueError) as e:
        result.exists = Path(destination).exists()
        result.errors.append(f"Failed to read {destination}: {e}")
    return result


def check_category(category: CategoryConfig, algorithm: str = "auto") -> IntegrityResult:
    """Check whether a destination matches its merged fragments.

    Never writes anything.

    Args:
        category: Category to check
        algorithm: Hash algorithm passed to hash_bytes()

    Returns:
        IntegrityResult; discovery, read and duplicate-section
        failures are recorded in errors
    """
    try:
        paths = discover_fragments(category.source_dir, category.prefix)
        merged = merge_fragments(load_fragments(paths, category.name))
    except SyncError as e:
        result = IntegrityResult(path=category.destination)
        result.errors.append(str(e))
        return result

    result = verify_destination(category.destination, merged.candidate, algorithm)
    result.fragment_count = len(merged.fragments)
    return result
