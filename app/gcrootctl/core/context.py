"""Run context: the process state a retention pass depends on.

Everything the engine would otherwise read from the environment
(invoking uid, wall clock, account database, booted system) is
captured once into an immutable RunContext and passed explicitly.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

from gcrootctl.core.paths import BOOTED_SYSTEM_PATH
from gcrootctl.core.users import AccountTable, enumerate_accounts

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class RunContext:
    """Snapshot of process state for a single run.

    Attributes:
        uid: Uid of the invoking process.
        now: Time the run started (timezone-aware, UTC).
        accounts: Known system accounts.
        booted_system: Fully resolved target of the booted-system link,
            or None when the machine has no such link.
    """

    uid: int
    now: datetime
    accounts: AccountTable = field(default_factory=AccountTable)
    booted_system: Path | None = None

    @classmethod
    def capture(cls, booted_system_link: Path = BOOTED_SYSTEM_PATH) -> RunContext:
        """Capture the current process state.

        Args:
            booted_system_link: Link naming the booted system generation.

        Returns:
            RunContext for the running process.
        """
        return cls(
            uid=os.getuid(),
            now=datetime.now(UTC),
            accounts=enumerate_accounts(),
            booted_system=_resolve_booted_system(booted_system_link),
        )


def _resolve_booted_system(link: Path) -> Path | None:
    """Fully resolve the booted-system link, if present."""
    try:
        return link.resolve(strict=True)
    except FileNotFoundError:
        logger.debug("No booted system link at %s", link)
        return None
    except OSError as e:
        logger.warning("Cannot resolve booted system link %s: %s", link, e)
        return None
