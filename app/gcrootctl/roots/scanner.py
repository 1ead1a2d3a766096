"""Scanner for root anchors and profile generations.

Walks the anchor directories (e.g. /nix/var/nix/gcroots/auto) and
profile directories, producing normalized records for every link that
keeps a store path alive. Entries that cannot be attributed to the
store are logged and dropped; the scanner never modifies anything.
"""

import errno
import logging
import os
import re
from collections.abc import Iterable, Iterator
from datetime import UTC, datetime
from pathlib import Path

from gcrootctl.core.context import RunContext
from gcrootctl.core.users import OwnershipSource
from gcrootctl.roots.models import AnchorRecord, Profile, ProfileGeneration
from gcrootctl.roots.store import resolve_store_path

logger = logging.getLogger(__name__)

GENERATION_LINK_RE = re.compile(r"^(.*)-([0-9]+)-link$")


def _mtime(stat: os.stat_result) -> datetime:
    return datetime.fromtimestamp(stat.st_mtime, tz=UTC)


class RootScanner:
    """Discovers root anchors and profile generations.

    Args:
        store: Store directory roots must resolve into.
        directories: Directories holding anchors.
        context: Run context (uid used for owned-only filtering).
        owned_only: If True, drop roots not owned by ``context.uid``.
        ownership: Which link's owner is the owner of a root.

    Attributes:
        traversed: Directory entries visited by the last scan.
        dangling: Anchors whose referent no longer exists.
        invalid: Entries dropped because they are not links into the store.
    """

    def __init__(
        self,
        store: Path,
        directories: Iterable[Path],
        *,
        context: RunContext,
        owned_only: bool,
        ownership: OwnershipSource = OwnershipSource.REFERENT,
    ) -> None:
        self._store = store
        self._directories = tuple(directories)
        self._context = context
        self._owned_only = owned_only
        self._ownership = ownership

        self.traversed = 0
        self.dangling = 0
        self.invalid = 0

    def scan(self) -> Iterator[AnchorRecord]:
        """Scan all anchor directories and yield valid records.

        Missing directories are skipped with a warning.

        Yields:
            AnchorRecord for each anchor resolving into the store.
        """
        self.traversed = 0
        self.dangling = 0
        self.invalid = 0

        for directory in self._directories:
            if not directory.is_dir():
                logger.warning("Anchor directory does not exist: %s", directory)
                continue
            yield from self._scan_directory(directory)

    def _scan_directory(self, directory: Path) -> Iterator[AnchorRecord]:
        try:
            entries = sorted(directory.iterdir())
        except OSError as e:
            logger.warning("Failed to read anchor directory %s: %s, skip", directory, e)
            return

        for entry in entries:
            self.traversed += 1
            record = self._to_record(entry)
            if record is not None:
                yield record

    def _to_record(self, anchor: Path) -> AnchorRecord | None:
        """Map an anchor to a record, or None when it must be dropped."""
        logger.debug("Processing %s", anchor)
        try:
            target = os.readlink(anchor)
        except OSError as e:
            if e.errno == errno.EINVAL:
                logger.debug("Ignore %s, not a symbolic link", anchor)
            else:
                logger.warning("Ignore %s, cannot read link: %s", anchor, e)
            self.invalid += 1
            return None

        # Relative targets are relative to the directory holding the anchor.
        referent = anchor.parent / target

        try:
            referent_stat = referent.lstat()
        except FileNotFoundError:
            logger.debug("Target of %s not found, skip", anchor)
            self.dangling += 1
            return None
        except PermissionError:
            if not self._owned_only:
                logger.warning("Ignore %s, permission denied reading %s", anchor, referent)
                self.invalid += 1
            else:
                logger.debug("Ignore %s in owned only mode, %s is not accessible", anchor, referent)
            return None
        except OSError as e:
            logger.warning("Ignore %s, cannot read metadata: %s", referent, e)
            self.invalid += 1
            return None

        owner_uid = self._owner_uid(anchor, referent_stat)
        if owner_uid is None:
            return None
        if self._owned_only and owner_uid != self._context.uid:
            logger.debug("Ignore %s in owned only mode, owned by uid %d", anchor, owner_uid)
            return None

        store_path = resolve_store_path(self._store, referent)
        if store_path is None:
            logger.warning("Ignore %s, not a link into store", referent)
            self.invalid += 1
            return None

        return AnchorRecord(
            anchor=anchor,
            referent=referent,
            store_path=store_path,
            mtime=_mtime(referent_stat),
            owner_uid=owner_uid,
            referent_uid=referent_stat.st_uid,
        )

    def _owner_uid(self, anchor: Path, referent_stat: os.stat_result) -> int | None:
        if self._ownership == OwnershipSource.REFERENT:
            return referent_stat.st_uid
        try:
            return anchor.lstat().st_uid
        except OSError as e:
            # Removed between readlink and lstat.
            logger.debug("Ignore %s, cannot read metadata: %s", anchor, e)
            return None

    def read_profile(self, path: Path) -> Profile | None:
        """Read a profile link and its numbered generations.

        Generations are the ``<profile-name>-<N>-link`` entries next to
        the profile link that resolve into the store.

        Args:
            path: The unversioned profile link.

        Returns:
            Profile, or None if the profile does not exist or (in
            owned-only mode) belongs to another user.
        """
        try:
            profile_stat = path.lstat()
        except FileNotFoundError:
            logger.info("Ignore profile %s, path not found", path)
            return None
        except PermissionError:
            if self._owned_only:
                logger.info("Ignore profile %s in owned only mode, not accessible", path)
            else:
                logger.warning("Ignore profile %s, permission denied", path)
            return None

        if self._owned_only and profile_stat.st_uid != self._context.uid:
            logger.info("Ignore profile %s in owned only mode, not owned by the current user", path)
            return None

        current: Path | None = None
        try:
            current = path.parent / os.readlink(path)
        except OSError as e:
            logger.warning("Profile %s is not a readable symbolic link: %s", path, e)

        generations = sorted(
            self._read_generations(path),
            key=lambda g: g.number,
            reverse=True,
        )
        return Profile(path=path, current=current, generations=tuple(generations))

    def _read_generations(self, profile: Path) -> Iterator[ProfileGeneration]:
        try:
            entries = sorted(profile.parent.iterdir())
        except OSError as e:
            logger.warning("Cannot read profile directory %s: %s", profile.parent, e)
            return

        for entry in entries:
            match = GENERATION_LINK_RE.match(entry.name)
            if match is None or match.group(1) != profile.name:
                continue

            try:
                link_stat = entry.lstat()
            except FileNotFoundError:
                continue

            store_path = resolve_store_path(self._store, entry)
            if store_path is None:
                logger.warning("Ignore generation %s, not a link into store", entry)
                continue

            yield ProfileGeneration(
                number=int(match.group(2)),
                path=entry,
                store_path=store_path,
                mtime=_mtime(link_stat),
            )
