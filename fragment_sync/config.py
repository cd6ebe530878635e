"""Configuration dataclasses for the fragment synchronizer."""

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union
from enum import Enum


DEFAULT_CATEGORIES = ("credentials", "config")
DEFAULT_BACKUP_SUFFIX = ".bak"


class RunMode(Enum):
    """Execution mode for a synchronizer run."""
    NORMAL = "normal"     # Back up and replace on difference
    PREVIEW = "preview"   # Discover, merge and compare only


@dataclass
class CategoryConfig:
    """Configuration for a single category of fragments.

    Attributes:
        name: Category name (e.g., "credentials", "config")
        source_dir: Directory holding the fragment files
        destination: File the merged fragments are written to
        backup_path: Where the destination is copied before replacement
                     (defaults to destination + SyncConfig.backup_suffix)
        prefix: Filename prefix of fragments (defaults to "<name>.")
    """
    name: str
    source_dir: Path
    destination: Path
    backup_path: Optional[Path] = None
    prefix: Optional[str] = None

    def __post_init__(self):
        """Ensure paths are Path objects and the prefix is set."""
        if isinstance(self.source_dir, str):
            self.source_dir = Path(self.source_dir)
        if isinstance(self.destination, str):
            self.destination = Path(self.destination)
        if isinstance(self.backup_path, str):
            self.backup_path = Path(self.backup_path)
        if not self.prefix:
            self.prefix = f"{self.name}."


@dataclass
class SyncConfig:
    """Global configuration for a Synchronizer run.

    Attributes:
        categories: Categories to process, in order
        mode: NORMAL mutates the filesystem on difference, PREVIEW never does
        backup_suffix: Suffix appended to the destination for default backups
        fsync: fsync temp files and directories around the atomic rename
        verify_after_write: Re-read and hash the destination after replacing it
        cleanup_stale_temps: Remove temp files left by interrupted runs
        log_file: Path to log file (None for stderr only)
    """
    categories: List[CategoryConfig] = field(default_factory=list)
    mode: RunMode = RunMode.NORMAL
    backup_suffix: str = DEFAULT_BACKUP_SUFFIX
    fsync: bool = True
    verify_after_write: bool = True
    cleanup_stale_temps: bool = True
    log_file: Optional[Path] = None

    def __post_init__(self):
        """Coerce strings to enums and paths."""
        if isinstance(self.mode, str):
            self.mode = RunMode(self.mode.lower())
        if isinstance(self.log_file, str):
            self.log_file = Path(self.log_file)
        if not isinstance(self.backup_suffix, str) or not self.backup_suffix:
            raise ValueError("backup_suffix must be a non-empty string")

    @property
    def preview(self) -> bool:
        """True when the run must not touch destination or backup files."""
        return self.mode is RunMode.PREVIEW

    def backup_path_for(self, category: CategoryConfig) -> Path:
        """Resolve the backup location for a category."""
        if category.backup_path is not None:
            return category.backup_path
        destination = category.destination
        return destination.with_name(destination.name + self.backup_suffix)

    def get_category(self, name: str) -> CategoryConfig:
        """Look up a configured category by name.

        Raises:
            KeyError: If no category with that name is configured
        """
        for category in self.categories:
            if category.name == name:
                return category
        raise KeyError(f"Category not configured: {name}")

    @classmethod
    def for_directories(
        cls,
        source_dir: Union[str, Path],
        target_dir: Union[str, Path],
        names: Iterable[str] = DEFAULT_CATEGORIES,
        mode: RunMode = RunMode.NORMAL,
        **kwargs: Any,
    ) -> "SyncConfig":
        """Build the conventional layout: target_dir/<name> fed by
        source_dir/<name>.<token>.<label> fragments.
        """
        source_dir = Path(source_dir)
        target_dir = Path(target_dir)
        categories = [
            CategoryConfig(
                name=name,
                source_dir=source_dir,
                destination=target_dir / name,
            )
            for name in names
        ]
        return cls(categories=categories, mode=mode, **kwargs)

    @classmethod
    def from_dict(
        cls,
        data: Dict[str, Any],
        base_dir: Optional[Path] = None,
    ) -> "SyncConfig":
        """Create a SyncConfig from a plain dictionary.

        Relative paths are resolved against base_dir when given.

        Raises:
            ValueError: If the dictionary is malformed
        """
        if not isinstance(data, dict):
            raise ValueError("Configuration must be a JSON object")

        def resolve(value: Optional[str]) -> Optional[Path]:
            if value is None:
                return None
            path = Path(value).expanduser()
            if base_dir is not None and not path.is_absolute():
                path = base_dir / path
            return path

        raw_categories = data.get("categories")
        if not isinstance(raw_categories, list) or not raw_categories:
            raise ValueError("Configuration needs a non-empty 'categories' list")

        categories = []
        for entry in raw_categories:
            try:
                categories.append(CategoryConfig(
                    name=entry["name"],
                    source_dir=resolve(entry["source_dir"]),
                    destination=resolve(entry["destination"]),
                    backup_path=resolve(entry.get("backup_path")),
                    prefix=entry.get("prefix"),
                ))
            except (KeyError, TypeError) as e:
                raise ValueError(f"Invalid category entry {entry!r}: {e}") from e

        names = [c.name for c in categories]
        if len(set(names)) != len(names):
            raise ValueError(f"Duplicate category names: {names}")

        mode = data.get("mode", RunMode.NORMAL.value)
        try:
            mode = RunMode(mode.lower() if isinstance(mode, str) else mode)
        except ValueError as e:
            raise ValueError(f"Invalid mode: {data.get('mode')!r}") from e

        return cls(
            categories=categories,
            mode=mode,
            backup_suffix=data.get("backup_suffix", DEFAULT_BACKUP_SUFFIX),
            fsync=bool(data.get("fsync", True)),
            verify_after_write=bool(data.get("verify_after_write", True)),
            cleanup_stale_temps=bool(data.get("cleanup_stale_temps", True)),
            log_file=resolve(data.get("log_file")),
        )


def load_config(path: Union[str, Path]) -> SyncConfig:
    """Load a SyncConfig from a JSON file.

    Args:
        path: Path to the JSON configuration file

    Returns:
        Parsed SyncConfig

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file isn't valid JSON or is malformed
    """
    path = Path(path)
    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e
    return SyncConfig.from_dict(data, base_dir=path.parent)
