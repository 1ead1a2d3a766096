"""Touch command implementation.

Marks store roots under a directory as recently used by refreshing
the modification time of their links.
"""

import time
from pathlib import Path
from typing import Annotated

import typer

from gcrootctl.cli.display import print_touch_report
from gcrootctl.core.config import require_config
from gcrootctl.touch.engine import TouchEngine, find_project_root
from gcrootctl.touch.overrides import OverrideSet
from gcrootctl.utils.formatting import print_error, print_info


def touch_roots(
    ctx: typer.Context,
    path: Annotated[
        Path,
        typer.Argument(help="Directory to walk (default: current directory)."),
    ] = Path("."),
    project: Annotated[
        bool,
        typer.Option(
            "--project",
            "-p",
            help="Walk the enclosing project and apply the configured project globs.",
        ),
    ] = False,
    no_recursive: Annotated[
        bool,
        typer.Option("--no-recursive", help="Only touch direct children of PATH."),
    ] = False,
    max_depth: Annotated[
        int | None,
        typer.Option("--max-depth", min=1, help="Maximum directory depth to descend."),
    ] = None,
    glob: Annotated[
        list[str] | None,
        typer.Option(
            "--glob",
            "-g",
            help="Override glob (prefix with ! to exclude). Later globs win.",
        ),
    ] = None,
    dry_run: Annotated[
        bool,
        typer.Option("--dry-run", help="Show what would be touched."),
    ] = False,
    silent: Annotated[
        bool,
        typer.Option("--silent", "-s", help="Do not list touched roots."),
    ] = False,
    output_runtime: Annotated[
        bool,
        typer.Option("--output-runtime", help="Print the elapsed time in seconds."),
    ] = False,
) -> None:
    """Touch every root below PATH that points into the store.

    Only symbolic links are touched, never their targets. Excluded
    directories are not descended into.

    Examples:
        gcrootctl touch ~/src/project
        gcrootctl touch --project
        gcrootctl touch . --glob '!node_modules/'
    """
    start = time.perf_counter()
    obj = ctx.obj or {}
    config = require_config(obj.get("config"))

    if not path.exists() and not path.is_symlink():
        print_error(f"Path does not exist: {path}")
        raise typer.Exit(code=1)

    globs: list[str] = []
    root = path
    if project:
        root = find_project_root(path)
        globs.extend(config.touch.project_globs)
    globs.extend(glob or [])

    try:
        overrides = OverrideSet(globs)
    except ValueError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    engine = TouchEngine(
        config.store,
        overrides,
        max_depth=1 if no_recursive else max_depth,
        dry_run=dry_run,
    )
    report = engine.run(root)

    if not silent:
        print_touch_report(report)
        if not report.results:
            print_info(f"No roots found under {root}.")

    if output_runtime:
        typer.echo(f"{time.perf_counter() - start:.6f}")

    if report.failed:
        raise typer.Exit(code=1)
