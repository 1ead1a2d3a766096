"""Touch engine: refresh the mtime of roots under a directory.

Walks a directory tree without following symlinks and sets the
modification time of every symlink resolving into the store to now,
so that age-based policies treat the root as recently used. The link
target is never modified.
"""

import logging
import os
import time
from collections.abc import Iterator
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath

from gcrootctl.roots.store import resolve_store_path
from gcrootctl.touch.overrides import OverrideSet

logger = logging.getLogger(__name__)

PROJECT_MARKERS: tuple[str, ...] = (".envrc", ".git")


def find_project_root(path: Path) -> Path:
    """Find the project directory containing ``path``.

    The project root is the nearest ancestor (or ``path`` itself)
    holding a ``.envrc`` or ``.git`` entry.

    Args:
        path: Directory inside a project.

    Returns:
        The project root, or ``path`` made absolute if none is found.
    """
    start = path.absolute()
    for candidate in (start, *start.parents):
        if any(os.path.lexists(candidate / marker) for marker in PROJECT_MARKERS):
            logger.debug("Project root for %s is %s", path, candidate)
            return candidate
    logger.info("No project marker found above %s, using it as project root", start)
    return start


@dataclass(frozen=True, slots=True)
class TouchResult:
    """Result of touching one root.

    Attributes:
        path: The symlink operated on.
        store_path: Store path the symlink resolves to.
        success: Whether the timestamp was updated (or would be, in dry-run).
        error: Error message if the update failed.
        dry_run: Whether this was a dry-run.
    """

    path: Path
    store_path: Path
    success: bool
    error: str | None = None
    dry_run: bool = False


@dataclass(slots=True)
class TouchReport:
    """Outcome of a touch walk.

    Attributes:
        root: Directory that was walked.
        visited: Entries visited, excluding pruned subtrees.
        results: One result per store root found.
    """

    root: Path
    visited: int = 0
    results: list[TouchResult] = field(default_factory=list)

    @property
    def touched(self) -> list[TouchResult]:
        """Successfully touched roots."""
        return [r for r in self.results if r.success]

    @property
    def failed(self) -> list[TouchResult]:
        """Roots whose timestamp could not be updated."""
        return [r for r in self.results if not r.success]


class TouchEngine:
    """Walks a directory and touches store roots.

    Args:
        store: Store directory links must resolve into.
        overrides: Override globs applied relative to the walk root.
        max_depth: Deepest level to visit (1 = direct children only).
        dry_run: If True, report roots without updating timestamps.
    """

    def __init__(
        self,
        store: Path,
        overrides: OverrideSet | None = None,
        *,
        max_depth: int | None = None,
        dry_run: bool = False,
    ) -> None:
        self._store = store
        self._overrides = overrides or OverrideSet()
        self._max_depth = max_depth
        self._dry_run = dry_run

    def run(self, root: Path) -> TouchReport:
        """Touch every store root below ``root``.

        Args:
            root: Directory (or single symlink) to process.

        Returns:
            TouchReport describing what was touched.
        """
        report = TouchReport(root=root)
        for path in self._walk(root, report):
            store_path = resolve_store_path(self._store, path)
            if store_path is None:
                logger.debug("Ignore %s, not a link into store", path)
                continue
            report.results.append(self._touch(path, store_path))
        return report

    def _walk(self, root: Path, report: TouchReport) -> Iterator[Path]:
        """Yield symlinks below ``root`` that pass the overrides."""
        if root.is_symlink():
            report.visited += 1
            yield root
            return

        pending: list[tuple[Path, int]] = [(root, 0)]
        while pending:
            directory, depth = pending.pop()
            if self._max_depth is not None and depth >= self._max_depth:
                continue
            try:
                entries = sorted(directory.iterdir())
            except OSError as e:
                logger.warning("Failed to read directory %s: %s, skip", directory, e)
                continue

            subdirectories: list[tuple[Path, int]] = []
            for entry in entries:
                report.visited += 1
                is_symlink = entry.is_symlink()
                is_dir = not is_symlink and entry.is_dir()
                relative = PurePosixPath(entry.relative_to(root).as_posix())
                if self._overrides.excluded(relative, is_dir):
                    logger.debug("Ignore %s, excluded by override", entry)
                    continue
                if is_symlink:
                    yield entry
                elif is_dir:
                    subdirectories.append((entry, depth + 1))
            pending.extend(reversed(subdirectories))

    def _touch(self, path: Path, store_path: Path) -> TouchResult:
        if self._dry_run:
            logger.info("Dry-run: would touch %s", path)
            return TouchResult(path=path, store_path=store_path, success=True, dry_run=True)

        try:
            atime_ns = path.lstat().st_atime_ns
            os.utime(path, ns=(atime_ns, time.time_ns()), follow_symlinks=False)
        except OSError as e:
            logger.error("Failed to touch %s: %s", path, e)
            return TouchResult(path=path, store_path=store_path, success=False, error=str(e))

        logger.debug("Touched %s", path)
        return TouchResult(path=path, store_path=store_path, success=True)
