"""Utility modules for gcrootctl.

This module exports commonly used utility functions.
"""

from gcrootctl.utils.duration import format_duration, format_duration_short, parse_duration
from gcrootctl.utils.formatting import (
    console,
    err_console,
    print_error,
    print_info,
)
from gcrootctl.utils.shell import CommandResult, run_command

__all__ = [
    "CommandResult",
    "console",
    "err_console",
    "format_duration",
    "format_duration_short",
    "parse_duration",
    "print_error",
    "print_info",
    "run_command",
]
