"""Generation retention for profiles.

A profile policy keeps the union of several rules (recent generations,
the newest N, the current and the booted generation). Every other
numbered generation is eligible for removal. The unversioned profile
link itself is never touched.
"""

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path

from gcrootctl.core.config import ProfilePolicyConfig, RunConfig
from gcrootctl.core.context import RunContext
from gcrootctl.core.users import expand_profile_paths
from gcrootctl.roots.models import Profile, ProfileGeneration
from gcrootctl.roots.scanner import RootScanner
from gcrootctl.utils.duration import format_duration

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class GenerationDecision:
    """Retention decision for one generation.

    Attributes:
        generation: The generation.
        reasons: Rules keeping the generation; empty when it may be removed.
    """

    generation: ProfileGeneration
    reasons: tuple[str, ...] = ()

    @property
    def keep(self) -> bool:
        """True when at least one rule keeps the generation."""
        return bool(self.reasons)


@dataclass(frozen=True, slots=True)
class ProfilePolicy:
    """A named profile policy.

    Attributes:
        name: Policy name (its key in the configuration).
        config: Policy settings.
    """

    name: str
    config: ProfilePolicyConfig

    def evaluate(
        self,
        profile: Profile,
        now: datetime,
        booted_system: Path | None = None,
    ) -> list[GenerationDecision]:
        """Decide which generations of ``profile`` are kept.

        Args:
            profile: Profile with its generations, newest first.
            now: Reference time for age rules.
            booted_system: Resolved store path of the booted system.

        Returns:
            One decision per generation, newest first.
        """
        config = self.config
        by_number = sorted(profile.generations, key=lambda g: g.number, reverse=True)
        newest = {g.number for g in by_number[: config.keep_latest_n or 0]}

        decisions: list[GenerationDecision] = []
        for generation in profile.generations:
            reasons: list[str] = []
            if config.keep_since is not None and generation.age(now) < config.keep_since:
                reasons.append(f"newer than {format_duration(config.keep_since)}")
            if generation.number in newest:
                reasons.append(f"latest {config.keep_latest_n}")
            if config.keep_current_system and generation.path == profile.current:
                reasons.append("current")
            if (
                config.keep_booted_system
                and booted_system is not None
                and generation.store_path == booted_system
            ):
                reasons.append("booted")
            decisions.append(GenerationDecision(generation=generation, reasons=tuple(reasons)))
        return decisions


@dataclass(frozen=True, slots=True)
class ProfileOutcome:
    """Decisions for one profile under one policy."""

    policy: ProfilePolicy
    profile: Profile
    decisions: tuple[GenerationDecision, ...]

    @property
    def expired(self) -> list[ProfileGeneration]:
        """Generations not kept by any rule."""
        return [d.generation for d in self.decisions if not d.keep]


class ProfileEvaluator:
    """Applies profile policies to every profile path they name.

    Args:
        policies: Enabled profile policies.
        scanner: Scanner used to read profiles.
        context: Run context.
        owned_only: Effective ownership restriction (drives ``~`` expansion).
    """

    def __init__(
        self,
        policies: Iterable[ProfilePolicy],
        scanner: RootScanner,
        *,
        context: RunContext,
        owned_only: bool,
    ) -> None:
        self._policies = tuple(policies)
        self._scanner = scanner
        self._context = context
        self._owned_only = owned_only

    @classmethod
    def from_config(
        cls,
        config: RunConfig,
        scanner: RootScanner,
        *,
        context: RunContext,
        owned_only: bool,
    ) -> "ProfileEvaluator":
        """Build an evaluator from the enabled policies of ``config``."""
        policies = [ProfilePolicy(name, cfg) for name, cfg in config.enabled_profile_policies()]
        return cls(policies, scanner, context=context, owned_only=owned_only)

    def profile_paths(self, policy: ProfilePolicy) -> list[Path]:
        """Expand the profile paths of ``policy`` for this run."""
        return expand_profile_paths(
            policy.config.profile_paths,
            self._context.accounts,
            owned_only=self._owned_only,
            uid=self._context.uid,
        )

    def evaluate(self) -> Iterator[ProfileOutcome]:
        """Evaluate every policy against every profile it names.

        Missing profiles and profiles without generations produce no
        outcome.

        Yields:
            ProfileOutcome per existing profile with generations.
        """
        for policy in self._policies:
            for path in self.profile_paths(policy):
                profile = self._scanner.read_profile(path)
                if profile is None or not profile.generations:
                    continue
                decisions = policy.evaluate(profile, self._context.now, self._context.booted_system)
                logger.debug(
                    "[%s] profile %s: %d generations, %d expired",
                    policy.name,
                    path,
                    len(decisions),
                    sum(1 for d in decisions if not d.keep),
                )
                yield ProfileOutcome(policy=policy, profile=profile, decisions=tuple(decisions))
