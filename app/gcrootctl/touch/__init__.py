"""Touch subsystem.

This module provides the directory walk that marks store roots as
recently used, and the override globs that narrow it.
"""

from gcrootctl.touch.engine import TouchEngine, TouchReport, TouchResult, find_project_root
from gcrootctl.touch.overrides import Decision, OverrideGlob, OverrideSet

__all__ = [
    "Decision",
    "OverrideGlob",
    "OverrideSet",
    "TouchEngine",
    "TouchReport",
    "TouchResult",
    "find_project_root",
]
