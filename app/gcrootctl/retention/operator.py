"""Deletion operator for planned roots.

Removes the links selected by the retention engine. Each removal is
independent: a failure is recorded and the batch continues.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from gcrootctl.retention.engine import PlanEntry

logger = logging.getLogger(__name__)


class RemovalStatus(str, Enum):
    """Outcome of a single removal.

    Attributes:
        REMOVED: The link was unlinked.
        DRY_RUN: The link would have been unlinked.
        SKIPPED: The link had already vanished.
        FAILED: The link could not be unlinked.
    """

    REMOVED = "removed"
    DRY_RUN = "dry-run"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class RemovalResult:
    """Result of removing one plan entry.

    Attributes:
        entry: The plan entry operated on.
        status: Outcome of the removal.
        error: Error message for failed or skipped removals.
    """

    entry: PlanEntry
    status: RemovalStatus
    error: str | None = None

    @property
    def path(self) -> Path:
        """Path operated on."""
        return self.entry.path

    @property
    def success(self) -> bool:
        """True unless the removal failed."""
        return self.status != RemovalStatus.FAILED

    @property
    def dry_run(self) -> bool:
        """True if nothing was actually removed."""
        return self.status == RemovalStatus.DRY_RUN


class RootOperator:
    """Unlinks temporary roots and profile generations.

    Args:
        dry_run: If True, report what would be removed without removing.
    """

    def __init__(self, dry_run: bool = False) -> None:
        self._dry_run = dry_run

    @property
    def dry_run(self) -> bool:
        """Whether this operator simulates removals."""
        return self._dry_run

    def remove(self, entries: Iterable[PlanEntry]) -> list[RemovalResult]:
        """Remove every entry and return one result per entry.

        Args:
            entries: Plan entries to remove.

        Returns:
            List of RemovalResult in input order.
        """
        return [self._remove_single(entry) for entry in entries]

    def _remove_single(self, entry: PlanEntry) -> RemovalResult:
        if self._dry_run:
            logger.info("Dry-run: would remove %s", entry.path)
            return RemovalResult(entry=entry, status=RemovalStatus.DRY_RUN)

        try:
            entry.path.unlink()
        except FileNotFoundError:
            logger.info("Skip %s, already removed", entry.path)
            return RemovalResult(
                entry=entry,
                status=RemovalStatus.SKIPPED,
                error=f"Path does not exist: {entry.path}",
            )
        except OSError as e:
            logger.error("Failed to remove %s: %s", entry.path, e)
            return RemovalResult(entry=entry, status=RemovalStatus.FAILED, error=str(e))

        logger.info("Removed %s", entry.path)
        return RemovalResult(entry=entry, status=RemovalStatus.REMOVED)


def tally(results: Iterable[RemovalResult]) -> dict[RemovalStatus, int]:
    """Count results by status."""
    counts = dict.fromkeys(RemovalStatus, 0)
    for result in results:
        counts[result.status] += 1
    return counts
