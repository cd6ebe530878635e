"""Fragment discovery and ordering.

Fragments are regular files named <prefix><sort-token>.<label>, e.g.
"credentials.2024-0301.work". Ordering is a plain lexicographic sort on the
filename, so the result never depends on directory enumeration order.
"""

import logging
from pathlib import Path
from typing import List, Optional, Tuple, Union

from fragment_sync.errors import DirectoryNotFound, ReadError

logger = logging.getLogger(__name__)


def split_fragment_name(name: str, prefix: str) -> Optional[Tuple[str, str]]:
    """Split a filename into (sort_token, label).

    Returns None when the name does not follow <prefix><token>.<label>
    with both parts non-empty.
    """
    if not name.startswith(prefix):
        return None
    token, sep, label = name[len(prefix):].partition(".")
    if not sep or not token or not label:
        return None
    return token, label


def discover_fragments(source_dir: Union[str, Path], prefix: str) -> List[Path]:
    """Find and order the fragment files of one category.

    Args:
        source_dir: Directory holding the fragments
        prefix: Category prefix including the trailing dot (e.g. "config.")

    Returns:
        Fragment paths sorted ascending by filename. May be empty.

    Raises:
        DirectoryNotFound: If source_dir is missing or not a directory
        ReadError: If the directory can't be listed
    """
    source_dir = Path(source_dir)

    try:
        if not source_dir.is_dir():
            raise DirectoryNotFound(source_dir)
        matched = [
            path for path in source_dir.iterdir()
            if split_fragment_name(path.name, prefix) is not None
            and path.is_file()
        ]
    except OSError as e:
        raise ReadError(source_dir, str(e)) from e

    matched.sort(key=lambda p: p.name)

    logger.debug(
        f"Discovered {len(matched)} fragment(s) for '{prefix}' in {source_dir}"
    )
    return matched
