"""Retention planning and execution.

This module provides the engine that turns policies into a deletion
plan, the operator that executes it, and the run statistics.
"""

from gcrootctl.retention.engine import (
    DeletionPlan,
    EvaluationReport,
    PlanEntry,
    PlanKind,
    RetentionEngine,
)
from gcrootctl.retention.operator import RemovalResult, RemovalStatus, RootOperator, tally
from gcrootctl.retention.statistics import RunStatistics

__all__ = [
    "DeletionPlan",
    "EvaluationReport",
    "PlanEntry",
    "PlanKind",
    "RemovalResult",
    "RemovalStatus",
    "RetentionEngine",
    "RootOperator",
    "RunStatistics",
    "tally",
]
