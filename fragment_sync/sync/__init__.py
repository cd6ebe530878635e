"""Synchronization module for the fragment synchronizer.

Philosophy: FRAGMENTS ARE TRUTH, THE DESTINATION IS DERIVED.

This module provides:
- discovery: Find and order a category's fragment files
- merge: Concatenate fragments and reject duplicate section identifiers
- diff: Byte-exact comparison with the destination
- replace: Backup and atomic temp-file-then-rename replacement
- engine: Synchronizer running all of the above per category

Write order: backup first (must succeed), destination second.
"""

from fragment_sync.sync.engine import Synchronizer, CategoryOutcome, RunReport
from fragment_sync.sync.discovery import discover_fragments
from fragment_sync.sync.merge import Fragment, Section, MergeResult, merge_fragments
from fragment_sync.sync.diff import DiffResult, detect_difference
from fragment_sync.sync.replace import ReplaceResult, atomic_write_bytes, backup_and_replace

__all__ = [
    "Synchronizer",
    "CategoryOutcome",
    "RunReport",
    "discover_fragments",
    "Fragment",
    "Section",
    "MergeResult",
    "merge_fragments",
    "DiffResult",
    "detect_difference",
    "ReplaceResult",
    "atomic_write_bytes",
    "backup_and_replace",
]
