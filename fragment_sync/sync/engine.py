"""Synchronizer: merges category fragments into their destination files.

Per category the run is:
    discover -> merge (+ duplicate-section check) -> compare -> back up & replace

The last step only happens in NORMAL mode and only when the candidate
differs from the destination. Categories are independent: an error in one
is recorded on its outcome and the run moves on to the next.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from fragment_sync.config import CategoryConfig, SyncConfig
from fragment_sync.errors import (
    DuplicateSectionError,
    ReadError,
    SyncError,
    VerificationError,
)
from fragment_sync.recovery.cleanup import remove_stale_temps
from fragment_sync.recovery.integrity import check_category, verify_destination
from fragment_sync.sync.diff import detect_difference
from fragment_sync.sync.discovery import discover_fragments
from fragment_sync.sync.merge import load_fragments, merge_fragments
from fragment_sync.sync.replace import backup_and_replace, resolve_destination
from fragment_sync.utils.hashing import hash_bytes

logger = logging.getLogger(__name__)


@dataclass
class CategoryOutcome:
    """What happened to one category during a run."""

    category: str
    preview: bool = False

    # Inputs
    fragments: List[str] = field(default_factory=list)
    sections: List[str] = field(default_factory=list)

    # Comparison
    different: bool = False
    candidate_size: int = 0
    destination_size: int = 0
    destination_existed: bool = False
    candidate_hash: Optional[str] = None

    # Mutation
    backup_created: bool = False
    replaced: bool = False
    bytes_written: int = 0
    verified: Optional[bool] = None

    # Timing
    started_at: float = 0.0
    completed_at: float = 0.0
    duration_ms: float = 0.0

    # Errors
    error: Optional[str] = None
    error_type: Optional[str] = None
    duplicate: Optional[Dict[str, str]] = None

    @property
    def fragment_count(self) -> int:
        return len(self.fragments)

    @property
    def success(self) -> bool:
        return self.error is None

    def record_error(self, error: SyncError) -> None:
        """Store an error, including duplicate-section details."""
        self.error = str(error)
        self.error_type = type(error).__name__
        if isinstance(error, DuplicateSectionError):
            self.duplicate = {
                "identifier": error.identifier,
                "first_file": str(error.first_file),
                "second_file": str(error.second_file),
            }

    def to_dict(self) -> Dict[str, Any]:
        """Convert outcome to dictionary."""
        return {
            "category": self.category,
            "success": self.success,
            "preview": self.preview,
            "fragment_count": self.fragment_count,
            "fragments": self.fragments,
            "sections": self.sections,
            "different": self.different,
            "candidate_size": self.candidate_size,
            "destination_size": self.destination_size,
            "destination_existed": self.destination_existed,
            "candidate_hash": self.candidate_hash,
            "backup_created": self.backup_created,
            "replaced": self.replaced,
            "bytes_written": self.bytes_written,
            "verified": self.verified,
            "duration_ms": self.duration_ms,
            "error": self.error,
            "error_type": self.error_type,
            "duplicate": self.duplicate,
        }


@dataclass
class RunReport:
    """Outcomes of every category processed in one run."""

    outcomes: List[CategoryOutcome] = field(default_factory=list)
    preview: bool = False

    @property
    def success(self) -> bool:
        """True only if no category failed."""
        return all(o.success for o in self.outcomes)

    @property
    def exit_code(self) -> int:
        return 0 if self.success else 1

    @property
    def failed(self) -> List[CategoryOutcome]:
        return [o for o in self.outcomes if not o.success]

    def get(self, category: str) -> CategoryOutcome:
        """Outcome for a category by name.

        Raises:
            KeyError: If the category wasn't part of the run
        """
        for outcome in self.outcomes:
            if outcome.category == category:
                return outcome
        raise KeyError(category)

    def to_dict(self) -> Dict[str, Any]:
        """Convert report to dictionary."""
        return {
            "success": self.success,
            "preview": self.preview,
            "categories": [o.to_dict() for o in self.outcomes],
        }


class Synchronizer:
    """Merges fragment files into destination files, one category at a time.

    All locations and the run mode come from the SyncConfig passed in;
    nothing is looked up from the environment.

    Attributes:
        config: SyncConfig with categories, mode and write options
    """

    def __init__(self, config: SyncConfig):
        """Initialize synchronizer.

        Args:
            config: Configuration for this run
        """
        self.config = config

    def run(self) -> RunReport:
        """Process every configured category.

        Returns:
            RunReport with one outcome per category, in configured order
        """
        report = RunReport(preview=self.config.preview)
        for category in self.config.categories:
            report.outcomes.append(self.sync_category(category))

        if report.success:
            logger.info(f"Run complete: {len(report.outcomes)} category(ies) ok")
        else:
            names = ", ".join(o.category for o in report.failed)
            logger.error(f"Run complete with failures: {names}")
        return report

    def sync_category(self, category: CategoryConfig) -> CategoryOutcome:
        """Discover, merge, compare and (when needed) replace one category.

        SyncErrors (and stray OSErrors, as ReadError) are recorded on the
        outcome, never raised.

        Args:
            category: Category to process

        Returns:
            CategoryOutcome describing what happened
        """
        outcome = CategoryOutcome(
            category=category.name,
            preview=self.config.preview,
            started_at=time.time(),
        )

        try:
            self._sync(category, outcome)
        except SyncError as e:
            e.category = category.name
            outcome.record_error(e)
            logger.error(f"[{category.name}] {e}")
        except OSError as e:
            # Anything the steps didn't already map to a SyncError
            error = ReadError(e.filename or category.destination, e.strerror or str(e))
            error.category = category.name
            outcome.record_error(error)
            logger.error(f"[{category.name}] {error}")

        return self._finalize_outcome(outcome)

    def _sync(self, category: CategoryConfig, outcome: CategoryOutcome) -> None:
        # 1. Discover and order
        paths = discover_fragments(category.source_dir, category.prefix)
        outcome.fragments = [p.name for p in paths]
        if not paths:
            logger.warning(f"[{category.name}] No fragments in {category.source_dir}")

        # 2. Merge; raises before anything is written on duplicates
        fragments = load_fragments(paths, category.name)
        merged = merge_fragments(fragments)
        outcome.sections = merged.identifiers
        outcome.candidate_size = len(merged.candidate)
        outcome.candidate_hash = hash_bytes(merged.candidate)

        # 3. Compare
        diff = detect_difference(merged.candidate, category.destination)
        outcome.different = diff.different
        outcome.destination_size = diff.destination_size
        outcome.destination_existed = diff.destination_exists

        if not diff.different:
            logger.debug(f"[{category.name}] {category.destination} already up to date")
            return

        if self.config.preview:
            logger.info(
                f"[{category.name}] Preview: would replace {category.destination} "
                f"({diff.destination_size} -> {diff.candidate_size} bytes)"
            )
            return

        # 4. Back up and replace
        backup_path = self.config.backup_path_for(category)
        if self.config.cleanup_stale_temps:
            remove_stale_temps(resolve_destination(category.destination))
            remove_stale_temps(backup_path)

        result = backup_and_replace(
            category.destination,
            backup_path,
            merged.candidate,
            fsync=self.config.fsync,
        )
        outcome.backup_created = result.backup_created
        outcome.bytes_written = result.bytes_written
        outcome.replaced = True

        if self.config.verify_after_write:
            integrity = verify_destination(category.destination, merged.candidate)
            outcome.verified = integrity.is_valid
            if not integrity.is_valid:
                raise VerificationError(
                    category.destination,
                    integrity.expected_hash,
                    integrity.actual_hash,
                )

    def _finalize_outcome(self, outcome: CategoryOutcome) -> CategoryOutcome:
        """Finalize outcome with timing info.

        Args:
            outcome: Outcome to finalize

        Returns:
            Finalized outcome
        """
        outcome.completed_at = time.time()
        outcome.duration_ms = (outcome.completed_at - outcome.started_at) * 1000

        if outcome.success:
            logger.info(
                f"[{outcome.category}] {outcome.fragment_count} fragment(s), "
                f"{len(outcome.sections)} section(s), "
                f"{'different' if outcome.different else 'unchanged'}, "
                f"{'replaced' if outcome.replaced else 'not replaced'} "
                f"({outcome.bytes_written} bytes written, "
                f"backup {'created' if outcome.backup_created else 'not created'}) "
                f"in {outcome.duration_ms:.1f}ms"
            )

        return outcome

    def get_sync_status(self) -> Dict[str, Any]:
        """Report, without mutating anything, which categories are in sync.

        Returns:
            Dict mapping category name to status info
        """
        status = {}
        for category in self.config.categories:
            backup_path = self.config.backup_path_for(category)
            integrity = check_category(category)
            status[category.name] = {
                "source_dir": str(category.source_dir),
                "destination": str(category.destination),
                "destination_exists": integrity.exists,
                "backup_path": str(backup_path),
                "backup_exists": backup_path.is_file(),
                "fragment_count": integrity.fragment_count,
                "in_sync": integrity.is_valid,
                "errors": integrity.errors,
            }
        return status
