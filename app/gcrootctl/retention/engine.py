"""Retention engine: builds the deletion plan for a run.

The engine scans anchors, resolves each against the temporary root
policies, evaluates profile policies, and collects everything eligible
for removal into a DeletionPlan. It never modifies the filesystem;
execution is left to RootOperator.
"""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from pathlib import Path

from gcrootctl.core.config import RunConfig
from gcrootctl.core.context import RunContext
from gcrootctl.core.users import resolve_owned_only
from gcrootctl.policy.filter import SubprocessFilter
from gcrootctl.policy.profile import ProfileEvaluator
from gcrootctl.policy.temporary import FilterFactory, TemporaryRootResolver
from gcrootctl.retention.statistics import RunStatistics
from gcrootctl.roots.scanner import RootScanner
from gcrootctl.utils.duration import format_duration_short

logger = logging.getLogger(__name__)


class PlanKind(str, Enum):
    """Kind of entry in a deletion plan.

    Attributes:
        TEMPORARY_ROOT: An expired temporary root.
        GENERATION: A profile generation outside the keep-set.
    """

    TEMPORARY_ROOT = "temporary-root"
    GENERATION = "generation"


@dataclass(frozen=True, slots=True)
class PlanEntry:
    """One path selected for removal.

    Attributes:
        path: Path to unlink.
        kind: Whether this is a temporary root or a generation.
        policy: Name of the policy that selected the path.
        store_path: Store path kept alive by the path.
        age: Age of the root or generation at run start.
        reason: Human-readable rationale.
    """

    path: Path
    kind: PlanKind
    policy: str
    store_path: Path
    age: timedelta
    reason: str


@dataclass(frozen=True, slots=True)
class DeletionPlan:
    """Ordered, duplicate-free set of entries to remove."""

    entries: tuple[PlanEntry, ...] = ()

    def __len__(self) -> int:
        return len(self.entries)

    def __iter__(self) -> Iterator[PlanEntry]:
        return iter(self.entries)

    @property
    def is_empty(self) -> bool:
        """True when nothing is eligible for removal."""
        return not self.entries

    @property
    def paths(self) -> list[Path]:
        """Paths in plan order."""
        return [entry.path for entry in self.entries]


@dataclass(slots=True)
class EvaluationReport:
    """Result of evaluating a run.

    Attributes:
        plan: Entries eligible for removal.
        statistics: Counters collected while evaluating.
    """

    plan: DeletionPlan = field(default_factory=DeletionPlan)
    statistics: RunStatistics = field(default_factory=RunStatistics)


class RetentionEngine:
    """Evaluates all policies for one run.

    Args:
        config: Validated configuration.
        context: Run context; ``context.now`` is the reference time.
        filter_factory: Builds filters for policies that declare one.
    """

    def __init__(
        self,
        config: RunConfig,
        context: RunContext,
        *,
        filter_factory: FilterFactory = SubprocessFilter,
    ) -> None:
        self._config = config
        self._context = context
        self._owned_only = resolve_owned_only(config.owned_only, context.uid)
        self._scanner = RootScanner(
            config.store,
            config.directory,
            context=context,
            owned_only=self._owned_only,
            ownership=config.ownership,
        )
        self._resolver = TemporaryRootResolver.from_config(
            config, context.accounts, filter_factory
        )
        self._profiles = ProfileEvaluator.from_config(
            config, self._scanner, context=context, owned_only=self._owned_only
        )

    @property
    def owned_only(self) -> bool:
        """Effective owned-only mode for this run."""
        return self._owned_only

    def evaluate(self) -> EvaluationReport:
        """Scan and evaluate every policy.

        Returns:
            EvaluationReport with the deletion plan and statistics.

        Raises:
            FilterSpawnError: If a filter program cannot be started.
        """
        statistics = RunStatistics()
        entries: dict[Path, PlanEntry] = {}

        for entry in self._temporary_root_entries(statistics):
            entries.setdefault(entry.path, entry)
        for entry in self._generation_entries(statistics):
            entries.setdefault(entry.path, entry)

        statistics.expired = len(entries)
        logger.info(
            "Evaluated %d monitored entries, %d eligible for removal",
            statistics.monitored,
            statistics.expired,
        )
        return EvaluationReport(
            plan=DeletionPlan(entries=tuple(entries.values())),
            statistics=statistics,
        )

    def _temporary_root_entries(self, statistics: RunStatistics) -> Iterator[PlanEntry]:
        now = self._context.now
        for record in self._scanner.scan():
            resolution = self._resolver.resolve(record)
            policy = resolution.policy
            if policy is None:
                continue
            if resolution.excluded:
                statistics.excluded += 1
                continue

            statistics.monitored += 1
            age = record.age(now)
            if not policy.expired(record, now):
                logger.debug(
                    "[%s] keep %s (%s old)",
                    policy.name,
                    record.referent,
                    format_duration_short(age),
                )
                continue

            period = policy.config.period or timedelta(0)
            yield PlanEntry(
                path=record.anchor if self._config.remove_root else record.referent,
                kind=PlanKind.TEMPORARY_ROOT,
                policy=policy.name,
                store_path=record.store_path,
                age=age,
                reason=f"older than {format_duration_short(period)}",
            )

        statistics.traversed = self._scanner.traversed
        statistics.dangling = self._scanner.dangling
        statistics.invalid = self._scanner.invalid

    def _generation_entries(self, statistics: RunStatistics) -> Iterator[PlanEntry]:
        now = self._context.now
        for outcome in self._profiles.evaluate():
            for decision in outcome.decisions:
                statistics.monitored += 1
                generation = decision.generation
                if decision.keep:
                    logger.debug(
                        "[%s] keep %s (%s)",
                        outcome.policy.name,
                        generation.path,
                        ", ".join(decision.reasons),
                    )
                    continue
                yield PlanEntry(
                    path=generation.path,
                    kind=PlanKind.GENERATION,
                    policy=outcome.policy.name,
                    store_path=generation.store_path,
                    age=generation.age(now),
                    reason=f"generation {generation.number} of {outcome.profile.path.name}",
                )
