"""Utility modules for the fragment synchronizer.

This package provides:
- hashing: Fast content and file hashing utilities
- logging: JSON/text log formatting and root logger setup
"""

from fragment_sync.utils.hashing import fast_hash_file, hash_bytes
from fragment_sync.utils.logging import JsonFormatter, configure_root_logger

__all__ = [
    "fast_hash_file",
    "hash_bytes",
    "JsonFormatter",
    "configure_root_logger",
]
