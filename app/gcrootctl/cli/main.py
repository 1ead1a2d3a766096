"""Main CLI application entry point.

Defines the Typer application, global options and logging setup.
"""

import logging
from enum import Enum
from pathlib import Path
from typing import Annotated

import typer
from rich.logging import RichHandler

from gcrootctl import __version__
from gcrootctl.cli.commands import example_config, run, touch, validate
from gcrootctl.utils.formatting import err_console

app = typer.Typer(
    name="gcrootctl",
    help="Policy-driven retention for Nix store roots.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


class LogLevel(str, Enum):
    """Log levels accepted by --log-level."""

    ERROR = "error"
    WARNING = "warning"
    INFO = "info"
    DEBUG = "debug"


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"gcrootctl version {__version__}")
        raise typer.Exit()


def _effective_level(verbose: int, log_level: LogLevel | None) -> int:
    if log_level is not None:
        return getattr(logging, log_level.value.upper())
    if verbose >= 2:
        return logging.DEBUG
    if verbose == 1:
        return logging.INFO
    return logging.WARNING


def setup_logging(level: int) -> None:
    """Route log records to stderr through Rich."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    config: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            envvar="GCROOTCTL_CONFIG",
            help="Config file merged over the global and user config.",
        ),
    ] = None,
    verbose: Annotated[
        int,
        typer.Option(
            "--verbose",
            "-v",
            count=True,
            help="Increase log verbosity (-v info, -vv debug).",
        ),
    ] = 0,
    log_level: Annotated[
        LogLevel | None,
        typer.Option(
            "--log-level",
            case_sensitive=False,
            help="Set the log level explicitly.",
        ),
    ] = None,
) -> None:
    """gcrootctl - Policy-driven retention for Nix store roots.

    Remove stale temporary roots and old profile generations so that
    the garbage collector can reclaim their store paths.
    """
    setup_logging(_effective_level(verbose, log_level))

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["config"] = config
    ctx.obj["verbose"] = verbose


# Register commands
app.command("run")(run.run_retention)
app.command("touch")(touch.touch_roots)
app.command("validate")(validate.validate_config)
app.command("example-config")(example_config.show_example_config)


if __name__ == "__main__":
    app()
