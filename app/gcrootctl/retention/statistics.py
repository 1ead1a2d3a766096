"""Counters collected during a retention run."""

from dataclasses import dataclass


@dataclass(slots=True)
class RunStatistics:
    """Counters for one run.

    Attributes:
        traversed: Entries visited in the anchor directories.
        dangling: Anchors whose referent no longer exists.
        invalid: Entries that are not links into the store.
        monitored: Roots and generations governed by a policy.
        excluded: Roots rejected by a policy's external filter.
        expired: Entries selected for removal.
        removed: Entries removed (or that would be removed in dry-run).
        skipped: Entries that vanished before removal.
        failed: Entries that could not be removed.
    """

    traversed: int = 0
    dangling: int = 0
    invalid: int = 0
    monitored: int = 0
    excluded: int = 0
    expired: int = 0
    removed: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def kept(self) -> int:
        """Monitored entries still in place after the run."""
        return max(self.monitored - self.removed - self.skipped, 0)

    def as_rows(self) -> list[tuple[str, int]]:
        """Return (label, value) pairs in display order."""
        return [
            ("traversed", self.traversed),
            ("dangling", self.dangling),
            ("invalid", self.invalid),
            ("monitored", self.monitored),
            ("excluded", self.excluded),
            ("expired", self.expired),
            ("removed", self.removed),
            ("skipped", self.skipped),
            ("failed", self.failed),
            ("kept", self.kept),
        ]
