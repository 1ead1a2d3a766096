"""Shared Rich display functions for plans and results.

Provides the table builders and summary printers used by the run and
touch commands.
"""

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gcrootctl.retention.engine import DeletionPlan, PlanKind
from gcrootctl.retention.operator import RemovalResult, RemovalStatus
from gcrootctl.retention.statistics import RunStatistics
from gcrootctl.touch.engine import TouchReport
from gcrootctl.utils.duration import format_duration_short
from gcrootctl.utils.formatting import console


def create_plan_table(plan: DeletionPlan, dry_run: bool = False) -> Table:
    """Create a Rich table displaying the deletion plan.

    Args:
        plan: Entries selected for removal.
        dry_run: Whether this is a dry-run (changes table title).

    Returns:
        Rich Table with Policy, Kind, Path, Age and Reason columns.
    """
    title = "Planned Removals (Dry Run)" if dry_run else "Planned Removals"

    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Policy", no_wrap=True)
    table.add_column("Kind", width=10)
    table.add_column("Path", no_wrap=True)
    table.add_column("Age", justify="right", width=8)
    table.add_column("Reason")

    for entry in plan:
        kind = "root" if entry.kind == PlanKind.TEMPORARY_ROOT else "generation"
        table.add_row(
            f"[policy]{entry.policy}[/policy]",
            kind,
            f"[removed]{escape(str(entry.path))}[/removed]",
            f"[age]{format_duration_short(entry.age)}[/age]",
            f"[muted]{escape(entry.reason)}[/muted]",
        )

    return table


def create_results_table(results: list[RemovalResult]) -> Table:
    """Create a Rich table displaying removal results.

    Args:
        results: Results returned by RootOperator.

    Returns:
        Rich Table with Status, Path and Details columns.
    """
    table = Table(
        title="Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=9, justify="center")
    table.add_column("Path", no_wrap=True)
    table.add_column("Details")

    for result in results:
        if result.status == RemovalStatus.DRY_RUN:
            status = "[info]dry-run[/]"
            detail = "Would remove"
        elif result.status == RemovalStatus.REMOVED:
            status = "[success]removed[/]"
            detail = ""
        elif result.status == RemovalStatus.SKIPPED:
            status = "[skipped]skipped[/]"
            detail = result.error or ""
        else:
            status = "[error]failed[/]"
            detail = result.error or "Unknown error"
        table.add_row(status, escape(str(result.path)), f"[muted]{escape(detail)}[/muted]")

    return table


def create_statistics_table(statistics: RunStatistics, dry_run: bool = False) -> Table:
    """Create a two-column table of run counters."""
    table = Table(
        title="Statistics",
        show_header=False,
        border_style="border",
    )
    table.add_column("Counter")
    table.add_column("Value", justify="right")

    for label, value in statistics.as_rows():
        suffix = " [muted](dry-run)[/muted]" if dry_run and label == "removed" and value else ""
        table.add_row(label, f"[bold]{value}[/bold]{suffix}")

    return table


def print_touch_report(report: TouchReport, target: Console = console) -> None:
    """Print one line per touched root.

    Args:
        report: Outcome of the touch walk.
        target: Console to print to.
    """
    for result in report.results:
        if not result.success:
            path, error = escape(str(result.path)), escape(result.error or "")
            target.print(f"[error]Failed[/error] {path}: [muted]{error}[/muted]")
            continue
        label = "Touch (dry-run)" if result.dry_run else "Touch"
        target.print(f"[kept]{label}[/kept] {escape(str(result.path))}")
