"""Fragment Sync - deterministic, crash-safe config-file synchronizer.

Merges an ordered set of fragment files into one destination file per
category (e.g. ~/.aws/credentials and ~/.aws/config), writing only when the
merged content differs and always keeping a backup of the previous file.

Key Features:
    - Deterministic ordering (lexicographic on fragment filename)
    - Duplicate [section] detection across fragments of a category
    - Byte-exact comparison; no write when nothing changed
    - Single-generation backup before every replacement
    - Atomic temp-file-then-rename writes, never a half-written destination
    - Preview mode that reports without touching the filesystem

Quick Start:
    from fragment_sync import Synchronizer, SyncConfig
    from pathlib import Path

    config = SyncConfig.for_directories(
        source_dir=Path("~/.aws/fragments").expanduser(),
        target_dir=Path("~/.aws").expanduser(),
    )
    report = Synchronizer(config).run()
    for outcome in report.outcomes:
        print(outcome.category, outcome.different, outcome.replaced)

Classes:
    Synchronizer: Runs discovery, merge, compare and replace per category
    SyncConfig: Run configuration (categories, mode, write options)
    CategoryConfig: Locations for a single category
    RunMode: Enum for run modes (NORMAL, PREVIEW)
    RunReport / CategoryOutcome: What a run did
"""

__version__ = "1.0.0"
__license__ = "MIT"

# Core configuration classes
from .config import (
    CategoryConfig,
    SyncConfig,
    RunMode,
    load_config,
)

# Sync components
from .sync.engine import Synchronizer, CategoryOutcome, RunReport

# Errors
from .errors import (
    SyncError,
    DirectoryNotFound,
    DuplicateSectionError,
    ReadError,
    BackupFailed,
    WriteError,
    VerificationError,
    BackupNotFound,
)

# Recovery components
from .recovery import restore_backup, check_category

# Public API
__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Main classes
    "Synchronizer",
    "SyncConfig",
    "CategoryConfig",
    "RunMode",
    "RunReport",
    "CategoryOutcome",
    "load_config",
    # Errors
    "SyncError",
    "DirectoryNotFound",
    "DuplicateSectionError",
    "ReadError",
    "BackupFailed",
    "WriteError",
    "VerificationError",
    "BackupNotFound",
    # Recovery
    "restore_backup",
    "check_category",
]
