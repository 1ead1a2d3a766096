"""Example-config command implementation."""

import typer

from gcrootctl.core.config import dump_config, example_config


def show_example_config() -> None:
    """Print the canonical example configuration as TOML."""
    typer.echo(dump_config(example_config()), nl=False)
