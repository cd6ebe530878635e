"""Removal of temp files left behind by interrupted runs.

atomic_write_bytes() stages content as ".<name>.<random>.tmp" next to the
target. If the process dies between creating the temp file and renaming it,
the temp file stays behind; the target itself is unaffected.
"""

import logging
from pathlib import Path
from typing import List, Union

from fragment_sync.sync.replace import TEMP_SUFFIX, temp_prefix

logger = logging.getLogger(__name__)


def find_stale_temps(target: Union[str, Path]) -> List[Path]:
    """List temp files staged for target, sorted by name.

    An unreadable parent directory yields an empty list and a warning.
    """
    target = Path(target)
    prefix = temp_prefix(target)
    try:
        if not target.parent.is_dir():
            return []
        return sorted(
            path for path in target.parent.iterdir()
            if path.name.startswith(prefix)
            and path.name.endswith(TEMP_SUFFIX)
            and path.is_file()
        )
    except OSError as e:
        logger.warning(f"Could not scan {target.parent} for stale temp files: {e}")
        return []


def remove_stale_temps(target: Union[str, Path]) -> List[Path]:
    """Delete temp files staged for target.

    Returns:
        Paths that were removed. Files that can't be removed are
        logged and skipped.
    """
    removed = []
    for path in find_stale_temps(target):
        try:
            path.unlink()
            removed.append(path)
            logger.info(f"Removed stale temp file {path}")
        except OSError as e:
            logger.warning(f"Could not remove stale temp file {path}: {e}")
    return removed
