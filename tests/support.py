"""Filesystem builders for tests.

Roots are built in a temporary directory tree that mimics a store, an
anchor directory and a user's home.
"""

import os
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

from gcrootctl.core.config import RunConfig, dump_config


def set_link_mtime(path: Path, when: datetime) -> None:
    """Set the mtime of a link itself without following it."""
    timestamp = when.timestamp()
    os.utime(path, times=(timestamp, timestamp), follow_symlinks=False)


class RootTree:
    """Builder for store paths, roots and profiles under ``base``."""

    def __init__(self, base: Path, now: datetime) -> None:
        self.now = now
        self.store = base / "nix" / "store"
        self.anchors = base / "gcroots"
        self.home = base / "home" / "tester"
        self.store.mkdir(parents=True)
        self.anchors.mkdir()
        self.home.mkdir(parents=True)
        self._counter = 0

    def store_path(self, name: str) -> Path:
        """Create (or reuse) a store path directory."""
        path = self.store / name
        path.mkdir(exist_ok=True)
        return path

    def root(
        self,
        referent: Path,
        age: timedelta = timedelta(0),
        store_name: str | None = None,
    ) -> Path:
        """Create a referent link into the store plus an anchor pointing at it.

        Returns:
            The anchor link.
        """
        self._counter += 1
        target = self.store_path(store_name or f"{self._counter:04d}-pkg")
        referent.parent.mkdir(parents=True, exist_ok=True)
        referent.symlink_to(target)
        set_link_mtime(referent, self.now - age)

        anchor = self.anchors / f"anchor-{self._counter:04d}"
        anchor.symlink_to(referent)
        return anchor

    def generation(
        self,
        profile: Path,
        number: int,
        age: timedelta = timedelta(0),
        store_name: str | None = None,
    ) -> Path:
        """Create a numbered generation link next to ``profile``."""
        profile.parent.mkdir(parents=True, exist_ok=True)
        target = self.store_path(store_name or f"{profile.name}-gen-{number}")
        link = profile.parent / f"{profile.name}-{number}-link"
        link.symlink_to(target)
        set_link_mtime(link, self.now - age)
        return link

    def profile(self, profile: Path, current: int) -> Path:
        """Point the unversioned profile link at generation ``current``."""
        profile.parent.mkdir(parents=True, exist_ok=True)
        profile.symlink_to(f"{profile.name}-{current}-link")
        return profile

    def config(self, **overrides: Any) -> RunConfig:
        """Build a RunConfig rooted in this tree."""
        data: dict[str, Any] = {
            "store": str(self.store),
            "directory": [str(self.anchors)],
            "owned-only": "false",
            "booted-system": str(self.store.parent / "booted-system"),
        }
        data.update(overrides)
        return RunConfig.model_validate(data)

    def write_config(self, path: Path, **overrides: Any) -> Path:
        """Write the tree's configuration as TOML to ``path``."""
        path.write_text(dump_config(self.config(**overrides)))
        return path

