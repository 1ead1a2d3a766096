"""Root domain models.

This module defines the records produced while scanning anchor
directories and profiles. Records are rebuilt on every run and are
never persisted.
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path

_ZERO = timedelta(0)


def age_at(mtime: datetime, now: datetime) -> timedelta:
    """Elapsed time since ``mtime``, clamped to zero for future timestamps."""
    return max(now - mtime, _ZERO)


@dataclass(frozen=True, slots=True)
class AnchorRecord:
    """A root anchor discovered in a monitored directory.

    Attributes:
        anchor: The link inside the monitored directory.
        referent: The anchor's one-level target (e.g. a ``result`` link).
        store_path: The referent fully resolved; always inside the store.
        mtime: Modification time of the referent itself, not followed.
        owner_uid: Uid owning the root, per the configured ownership source.
        referent_uid: Uid owning the referent link; selects the home used
            for home-relative ignore prefixes.
    """

    anchor: Path
    referent: Path
    store_path: Path
    mtime: datetime
    owner_uid: int
    referent_uid: int

    def age(self, now: datetime) -> timedelta:
        """Return how long ago the referent was last modified."""
        return age_at(self.mtime, now)


@dataclass(frozen=True, slots=True)
class ProfileGeneration:
    """One numbered generation link of a profile.

    Attributes:
        number: Generation number parsed from ``<name>-<N>-link``.
        path: The generation link.
        store_path: The link fully resolved; always inside the store.
        mtime: Modification time of the link itself.
    """

    number: int
    path: Path
    store_path: Path
    mtime: datetime

    def age(self, now: datetime) -> timedelta:
        """Return how long ago the generation was created."""
        return age_at(self.mtime, now)


@dataclass(frozen=True, slots=True)
class Profile:
    """A profile link and its numbered generations.

    Attributes:
        path: The unversioned profile link.
        current: The generation link the profile points at, if any.
        generations: Generations sorted newest (highest number) first.
    """

    path: Path
    current: Path | None
    generations: tuple[ProfileGeneration, ...] = field(default_factory=tuple)

    @property
    def current_generation(self) -> ProfileGeneration | None:
        """Return the generation the profile link points at."""
        for generation in self.generations:
            if generation.path == self.current:
                return generation
        return None
