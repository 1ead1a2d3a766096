"""Retention policies.

This module provides the temporary root resolver with its external
filter adapter, and the profile generation evaluator.
"""

from gcrootctl.policy.filter import FilterSpawnError, RootFilter, StaticFilter, SubprocessFilter
from gcrootctl.policy.profile import (
    GenerationDecision,
    ProfileEvaluator,
    ProfileOutcome,
    ProfilePolicy,
)
from gcrootctl.policy.temporary import (
    FilterFactory,
    Resolution,
    TemporaryRootPolicy,
    TemporaryRootResolver,
)

__all__ = [
    "FilterFactory",
    "FilterSpawnError",
    "GenerationDecision",
    "ProfileEvaluator",
    "ProfileOutcome",
    "ProfilePolicy",
    "Resolution",
    "RootFilter",
    "StaticFilter",
    "SubprocessFilter",
    "TemporaryRootPolicy",
    "TemporaryRootResolver",
]
