"""Recovery helpers for the fragment synchronizer.

This package provides:
- integrity: Hash-based verification of a destination against its fragments
- restore: Rolling a destination back to its backup
- cleanup: Removing temp files left by interrupted runs
"""

from fragment_sync.recovery.integrity import (
    IntegrityResult,
    check_category,
    verify_destination,
)
from fragment_sync.recovery.restore import RestoreResult, restore_backup
from fragment_sync.recovery.cleanup import find_stale_temps, remove_stale_temps

__all__ = [
    "IntegrityResult",
    "check_category",
    "verify_destination",
    "RestoreResult",
    "restore_backup",
    "find_stale_temps",
    "remove_stale_temps",
]
