"""CLI commands for gcrootctl.

This package contains all subcommand implementations.
"""

from gcrootctl.cli.commands import example_config, run, touch, validate

__all__ = ["example_config", "run", "touch", "validate"]
