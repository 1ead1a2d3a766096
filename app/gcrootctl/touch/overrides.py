"""Gitignore-style override globs for the touch walk.

A plain glob includes matching entries, a glob prefixed with ``!``
excludes them, and the last matching glob wins. Globs without a slash
match the entry name at any depth; globs containing a slash are
anchored to the walk root. A trailing slash restricts a glob to
directories. When at least one include glob exists, files that match
no glob are skipped.
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from enum import Enum
from fnmatch import fnmatchcase
from pathlib import PurePosixPath


class Decision(str, Enum):
    """Result of matching a path against an OverrideSet."""

    INCLUDE = "include"
    EXCLUDE = "exclude"
    NONE = "none"


def _match_parts(pattern: Sequence[str], parts: Sequence[str]) -> bool:
    if not pattern:
        return not parts
    head, rest = pattern[0], pattern[1:]
    if head == "**":
        return any(_match_parts(rest, parts[i:]) for i in range(len(parts) + 1))
    return bool(parts) and fnmatchcase(parts[0], head) and _match_parts(rest, parts[1:])


@dataclass(frozen=True, slots=True)
class OverrideGlob:
    """A single parsed override glob.

    Attributes:
        raw: The glob as written.
        pattern: Glob body without ``!`` prefix or slashes at the ends.
        exclude: True for ``!`` globs.
        anchored: True if the glob is matched against the full relative path.
        directory_only: True if the glob ends with a slash.
    """

    raw: str
    pattern: str
    exclude: bool
    anchored: bool
    directory_only: bool

    @classmethod
    def parse(cls, raw: str) -> "OverrideGlob":
        """Parse a glob string.

        Raises:
            ValueError: If the glob is empty.
        """
        body = raw
        exclude = body.startswith("!")
        if exclude:
            body = body[1:]
        directory_only = body.endswith("/")
        body = body.rstrip("/")
        anchored = "/" in body
        body = body.lstrip("/")
        if not body:
            msg = f"Invalid override glob: {raw!r}"
            raise ValueError(msg)
        return cls(
            raw=raw,
            pattern=body,
            exclude=exclude,
            anchored=anchored,
            directory_only=directory_only,
        )

    def matches(self, relative: PurePosixPath, is_dir: bool) -> bool:
        """Check whether ``relative`` (relative to the walk root) matches."""
        if self.directory_only and not is_dir:
            return False
        if self.anchored:
            return _match_parts(self.pattern.split("/"), relative.parts)
        return fnmatchcase(relative.name, self.pattern)


class OverrideSet:
    """Ordered collection of override globs.

    Args:
        globs: Glob strings in priority order (later wins).

    Raises:
        ValueError: If a glob is empty.
    """

    def __init__(self, globs: Iterable[str] = ()) -> None:
        self._globs = tuple(OverrideGlob.parse(g) for g in globs)

    def __len__(self) -> int:
        return len(self._globs)

    def __bool__(self) -> bool:
        return bool(self._globs)

    @property
    def globs(self) -> tuple[OverrideGlob, ...]:
        """Parsed globs in order."""
        return self._globs

    @property
    def has_includes(self) -> bool:
        """True if any glob is an include glob."""
        return any(not g.exclude for g in self._globs)

    def decide(self, relative: PurePosixPath, is_dir: bool) -> Decision:
        """Return the decision of the last matching glob."""
        for glob in reversed(self._globs):
            if glob.matches(relative, is_dir):
                return Decision.EXCLUDE if glob.exclude else Decision.INCLUDE
        return Decision.NONE

    def excluded(self, relative: PurePosixPath, is_dir: bool) -> bool:
        """Check whether the walk must skip ``relative``.

        Directories are only skipped by an explicit exclude glob; files
        are also skipped when include globs exist and none matches.
        """
        decision = self.decide(relative, is_dir)
        if decision == Decision.EXCLUDE:
            return True
        return decision == Decision.NONE and self.has_includes and not is_dir
