"""Run command implementation.

Performs a full retention pass: scan roots, evaluate policies, show
the plan and remove everything that is eligible.
"""

from pathlib import Path
from typing import Annotated

import typer
from rich.console import Console

from gcrootctl.cli.display import create_plan_table, create_results_table, create_statistics_table
from gcrootctl.core.config import ConfigValidationError, require_config
from gcrootctl.core.context import RunContext
from gcrootctl.policy.filter import FilterSpawnError
from gcrootctl.retention.engine import RetentionEngine
from gcrootctl.retention.operator import RemovalResult, RemovalStatus, RootOperator, tally
from gcrootctl.retention.statistics import RunStatistics
from gcrootctl.utils.formatting import console, err_console, print_error

STDOUT_MARKER = "-"
_REMOVED_STATUSES = (RemovalStatus.REMOVED, RemovalStatus.DRY_RUN)


def run_retention(
    ctx: typer.Context,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be removed without removing."),
    ] = False,
    interactive: Annotated[
        bool,
        typer.Option("--interactive", "-i", help="Ask for confirmation before removing."),
    ] = False,
    ignore_prefix: Annotated[
        list[Path] | None,
        typer.Option(
            "--ignore-prefix",
            help="Replace the absolute ignore prefixes of every temporary root policy.",
        ),
    ] = None,
    ignore_prefix_in_home: Annotated[
        list[Path] | None,
        typer.Option(
            "--ignore-prefix-in-home",
            help="Replace the home-relative ignore prefixes of every temporary root policy.",
        ),
    ] = None,
    output: Annotated[
        str | None,
        typer.Option(
            "--output",
            "-o",
            help="Write removed paths to FILE ('-' for stdout).",
            metavar="FILE",
        ),
    ] = None,
    null_delimiter: Annotated[
        bool,
        typer.Option("--null-delimiter", "-0", help="Separate output paths with NUL."),
    ] = False,
    no_statistics: Annotated[
        bool,
        typer.Option("--no-statistics", help="Do not print run statistics."),
    ] = False,
) -> None:
    """Remove expired temporary roots and old profile generations.

    Every anchor is matched against the temporary root policies; the
    matching policy with the lowest priority decides. Profile policies
    remove generations outside their keep rules.

    Examples:
        gcrootctl run --dry-run
        gcrootctl run -i
        gcrootctl run --output - --null-delimiter | xargs -0 echo
    """
    obj = ctx.obj or {}
    config = require_config(obj.get("config"))
    try:
        config = config.with_ignore_overrides(ignore_prefix, ignore_prefix_in_home)
    except ConfigValidationError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    # Keep stdout clean for machine-readable output
    ui = err_console if output == STDOUT_MARKER else console

    context = RunContext.capture(config.booted_system)
    engine = RetentionEngine(config, context)
    try:
        report = engine.evaluate()
    except FilterSpawnError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    plan = report.plan
    statistics = report.statistics
    results: list[RemovalResult] = []

    if plan.is_empty:
        ui.print("[success]Nothing to remove.[/]")
    else:
        ui.print(create_plan_table(plan, dry_run=dry_run))

        if interactive and not dry_run:
            confirmed = typer.confirm(
                f"\nProceed with removing {len(plan)} path(s)?",
                default=False,
                err=output == STDOUT_MARKER,
            )
            if not confirmed:
                ui.print("[info]Aborted.[/]")
                _finish(ui, statistics, dry_run, no_statistics)
                raise typer.Exit(code=0)

        operator = RootOperator(dry_run=dry_run)
        results = operator.remove(plan)
        _record_results(statistics, results)
        ui.print(create_results_table(results))

    if output is not None:
        removed = [r.path for r in results if r.status in _REMOVED_STATUSES]
        _write_removed_paths(removed, output, "\0" if null_delimiter else "\n")

    _finish(ui, statistics, dry_run, no_statistics)

    if statistics.failed:
        print_error(f"{statistics.failed} path(s) could not be removed.")
        raise typer.Exit(code=1)


# === Private helper functions ===


def _record_results(statistics: RunStatistics, results: list[RemovalResult]) -> None:
    """Fold removal outcomes into the run statistics."""
    counts = tally(results)
    statistics.removed = sum(counts[status] for status in _REMOVED_STATUSES)
    statistics.skipped = counts[RemovalStatus.SKIPPED]
    statistics.failed = counts[RemovalStatus.FAILED]


def _finish(ui: Console, statistics: RunStatistics, dry_run: bool, no_statistics: bool) -> None:
    """Print the statistics block unless disabled."""
    if not no_statistics:
        ui.print(create_statistics_table(statistics, dry_run=dry_run))


def _write_removed_paths(paths: list[Path], output: str, delimiter: str) -> None:
    """Write removed paths, each followed by ``delimiter``."""
    text = "".join(f"{path}{delimiter}" for path in paths)
    if output == STDOUT_MARKER:
        typer.echo(text, nl=False)
        return

    try:
        Path(output).write_text(text)
    except OSError as e:
        print_error(f"Failed to write output file {output}: {e}")
        raise typer.Exit(code=1) from e
