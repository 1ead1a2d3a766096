"""Validate command implementation.

Loads and validates the configuration, then prints it normalized.
"""

import typer

from gcrootctl.core.config import dump_config, require_config
from gcrootctl.utils.formatting import err_console


def validate_config(ctx: typer.Context) -> None:
    """Validate the merged configuration and print it as TOML.

    Exits with status 1 if the configuration cannot be loaded.
    """
    obj = ctx.obj or {}
    config = require_config(obj.get("config"))
    typer.echo(dump_config(config), nl=False)
    err_console.print("[success]Configuration is valid.[/]")
