"""System account lookup and home-relative path expansion.

Resolves which anchors belong to the invoking user and expands
``~``-prefixed profile paths. Expansion is a pure function of the
patterns, the account table and the ownership mode so it can be
exercised without touching the filesystem.
"""

from __future__ import annotations

import logging
import pwd
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

logger = logging.getLogger(__name__)

ROOT_UID = 0


class OwnedOnly(str, Enum):
    """Ownership restriction mode.

    Attributes:
        AUTO: Restrict to owned anchors unless running as root.
        TRUE: Only anchors owned by the invoking user.
        FALSE: Anchors of every user.
    """

    AUTO = "auto"
    TRUE = "true"
    FALSE = "false"


class OwnershipSource(str, Enum):
    """Which link's metadata decides who owns an anchor.

    Attributes:
        ANCHOR: The anchor link inside the monitored directory.
        REFERENT: The user-level link the anchor points at.
    """

    ANCHOR = "anchor"
    REFERENT = "referent"


@dataclass(frozen=True, slots=True)
class UserAccount:
    """A system account.

    Attributes:
        uid: Numeric user id.
        name: Login name.
        home: Home directory.
    """

    uid: int
    name: str
    home: Path


@dataclass(frozen=True, slots=True)
class AccountTable:
    """Immutable uid to account lookup table."""

    accounts: tuple[UserAccount, ...] = ()

    def get(self, uid: int) -> UserAccount | None:
        """Return the account with the given uid, if known."""
        for account in self.accounts:
            if account.uid == uid:
                return account
        return None

    def home_of(self, uid: int) -> Path | None:
        """Return the home directory of a uid, if known."""
        account = self.get(uid)
        return account.home if account is not None else None

    def homes(self) -> list[Path]:
        """Return every distinct home directory, in account order."""
        return list(dict.fromkeys(account.home for account in self.accounts))

    def __len__(self) -> int:
        return len(self.accounts)


def enumerate_accounts() -> AccountTable:
    """Read all accounts from the system user database.

    Returns:
        AccountTable with one entry per passwd record. Duplicate uids
        keep the first record.
    """
    seen: set[int] = set()
    accounts: list[UserAccount] = []
    for entry in pwd.getpwall():
        if entry.pw_uid in seen:
            continue
        seen.add(entry.pw_uid)
        accounts.append(UserAccount(uid=entry.pw_uid, name=entry.pw_name, home=Path(entry.pw_dir)))
    logger.debug("Discovered %d system accounts", len(accounts))
    return AccountTable(tuple(accounts))


def resolve_owned_only(mode: OwnedOnly, uid: int) -> bool:
    """Resolve an ownership mode to its effective value.

    Args:
        mode: Configured ownership mode.
        uid: Uid of the invoking process.

    Returns:
        True when only anchors owned by ``uid`` should be considered.
    """
    if mode == OwnedOnly.AUTO:
        owned_only = uid != ROOT_UID
        if owned_only:
            logger.info("Running as non-root user, only monitoring owned GC roots")
        else:
            logger.info("Running as root user, monitoring all GC roots")
        return owned_only
    return mode == OwnedOnly.TRUE


def is_home_relative(pattern: str) -> bool:
    """Check whether a path pattern is ``~`` or starts with ``~/``."""
    return pattern == "~" or pattern.startswith("~/")


def expand_home_pattern(pattern: str, homes: Iterable[Path]) -> list[Path]:
    """Expand a single pattern against a set of home directories.

    Absolute patterns expand to themselves regardless of ``homes``.

    Args:
        pattern: Absolute path or ``~``-prefixed path.
        homes: Home directories to substitute for ``~``.

    Returns:
        Expanded paths, one per home for home-relative patterns.
    """
    if not is_home_relative(pattern):
        return [Path(pattern)]

    relative = pattern[2:] if pattern.startswith("~/") else ""
    return [home / relative if relative else home for home in homes]


def expand_profile_paths(
    patterns: Iterable[str],
    accounts: AccountTable,
    *,
    owned_only: bool,
    uid: int,
) -> list[Path]:
    """Expand profile path patterns into concrete profile paths.

    In owned-only mode ``~`` is the invoking user's home; otherwise the
    pattern fans out to the home of every known account.

    Args:
        patterns: Configured profile paths.
        accounts: Known system accounts.
        owned_only: Effective ownership restriction.
        uid: Uid of the invoking process.

    Returns:
        Deduplicated list of profile paths in pattern order.
    """
    if owned_only:
        home = accounts.home_of(uid)
        homes = [home] if home is not None else []
    else:
        homes = accounts.homes()

    result: list[Path] = []
    for pattern in patterns:
        expanded = expand_home_pattern(pattern, homes)
        if not expanded:
            logger.warning("Cannot expand %s: no home directory for uid %d", pattern, uid)
        result.extend(expanded)
    return list(dict.fromkeys(result))
