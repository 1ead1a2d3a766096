"""Policy selection for temporary roots.

Each anchor is governed by at most one temporary root policy: the
enabled, matching policy with the lowest ``(priority, name)``. The
winner's external filter, if any, may then exclude the anchor from
the run altogether.
"""

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from gcrootctl.core.config import FilterSpec, RunConfig, TemporaryRootPolicyConfig
from gcrootctl.core.users import AccountTable
from gcrootctl.policy.filter import RootFilter, SubprocessFilter
from gcrootctl.roots.models import AnchorRecord

logger = logging.getLogger(__name__)

FilterFactory = Callable[[FilterSpec], RootFilter]


@dataclass(frozen=True, slots=True)
class TemporaryRootPolicy:
    """A named temporary root policy.

    Attributes:
        name: Policy name (its key in the configuration).
        config: Policy settings.
    """

    name: str
    config: TemporaryRootPolicyConfig

    @property
    def sort_key(self) -> tuple[int, str]:
        """Precedence key; the smallest key wins."""
        return (self.config.priority, self.name)

    def matches(self, record: AnchorRecord, home: Path | None) -> bool:
        """Check whether this policy claims ``record``, ignoring filters.

        Args:
            record: Candidate root.
            home: Home directory of the root's owner, if known.

        Returns:
            True if the referent matches the regex and no ignore prefix.
        """
        path = record.referent
        if self._ignored_by_prefix(path) or self._ignored_by_prefix_in_home(path, home):
            logger.debug("[%s] ignore %s, path in ignore prefixes", self.name, path)
            return False

        if self.config.path_regex.search(str(path)) is None:
            logger.debug(
                "[%s] ignore %s, path does not match regex %r",
                self.name,
                path,
                self.config.path_regex.pattern,
            )
            return False

        return True

    def expired(self, record: AnchorRecord, now: datetime) -> bool:
        """Check whether ``record`` is old enough to remove.

        The boundary is inclusive. A policy without a period never expires
        anything.
        """
        if self.config.period is None:
            return False
        return record.age(now) >= self.config.period

    def _ignored_by_prefix(self, path: Path) -> bool:
        return any(path.is_relative_to(prefix) for prefix in self.config.ignore_prefixes)

    def _ignored_by_prefix_in_home(self, path: Path, home: Path | None) -> bool:
        if home is None:
            return False
        return any(
            path.is_relative_to(home / prefix) for prefix in self.config.ignore_prefixes_in_home
        )


@dataclass(frozen=True, slots=True)
class Resolution:
    """Outcome of policy selection for one root.

    Attributes:
        record: The root.
        policy: Winning policy, or None when no policy matched.
        excluded: True when the winner's filter rejected the root.
    """

    record: AnchorRecord
    policy: TemporaryRootPolicy | None
    excluded: bool = False

    @property
    def claimed(self) -> bool:
        """True when a policy governs the root."""
        return self.policy is not None and not self.excluded


class TemporaryRootResolver:
    """Selects the governing policy for each root.

    Args:
        policies: Enabled policies.
        accounts: Account table used for home-relative ignore prefixes.
        filter_factory: Builds a filter for a policy's FilterSpec.
    """

    def __init__(
        self,
        policies: Iterable[TemporaryRootPolicy],
        accounts: AccountTable,
        filter_factory: FilterFactory = SubprocessFilter,
    ) -> None:
        self._policies = tuple(policies)
        self._accounts = accounts
        self._filter_factory = filter_factory
        self._filters: dict[str, RootFilter] = {}

    @classmethod
    def from_config(
        cls,
        config: RunConfig,
        accounts: AccountTable,
        filter_factory: FilterFactory = SubprocessFilter,
    ) -> "TemporaryRootResolver":
        """Build a resolver from the enabled policies of ``config``."""
        policies = [
            TemporaryRootPolicy(name, policy_config)
            for name, policy_config in config.enabled_temporary_root_policies()
        ]
        return cls(policies, accounts, filter_factory)

    @property
    def policies(self) -> tuple[TemporaryRootPolicy, ...]:
        """Policies considered by this resolver."""
        return self._policies

    def select(self, record: AnchorRecord) -> TemporaryRootPolicy | None:
        """Return the winning policy for ``record`` without running filters."""
        home = self._accounts.home_of(record.referent_uid)
        candidates = [p for p in self._policies if p.config.enable and p.matches(record, home)]
        if not candidates:
            return None
        return min(candidates, key=lambda p: p.sort_key)

    def resolve(self, record: AnchorRecord) -> Resolution:
        """Select the policy for ``record`` and apply its filter.

        Raises:
            FilterSpawnError: If the winner's filter cannot be started.
        """
        policy = self.select(record)
        if policy is None:
            logger.debug("Keep %s, no matching temporary root policy", record.referent)
            return Resolution(record=record, policy=None)

        spec = policy.config.filter
        if spec is not None and not self._filter_for(policy.name, spec).approve(record):
            logger.debug(
                "[%s] ignore %s, filtered out by external filter", policy.name, record.referent
            )
            return Resolution(record=record, policy=policy, excluded=True)

        return Resolution(record=record, policy=policy)

    def _filter_for(self, name: str, spec: FilterSpec) -> RootFilter:
        if name not in self._filters:
            self._filters[name] = self._filter_factory(spec)
        return self._filters[name]
