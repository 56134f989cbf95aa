"""Summary rendering for the end of an install run."""

from rich.console import Console
from rich.table import Table
from rich.text import Text

from native_install.core.report import ExitStatus, Outcome, Report

_OUTCOME_STYLES: dict[Outcome, str] = {
    Outcome.INSTALLED: "green",
    Outcome.SKIPPED: "yellow",
    Outcome.ERROR: "red",
    Outcome.FATAL: "bold red",
}


def build_summary_table(report: Report) -> Table:
    """Build a table of every reported target outcome.

    Targets whose outcome is not reported (hooks that succeeded, silent
    skips) are left out.
    """
    table = Table(show_header=True, header_style="bold")
    table.add_column("target", style="cyan", no_wrap=True)
    table.add_column("outcome", no_wrap=True)
    table.add_column("details")

    for entry in report.reported_entries():
        style = _OUTCOME_STYLES.get(entry.outcome, "")
        details = entry.message
        if entry.destination is not None and entry.outcome is not Outcome.INSTALLED:
            details = f"{details} ({entry.destination})"
        table.add_row(Text(entry.name), Text(entry.outcome.value, style=style), Text(details))
    return table


def status_line(report: Report, *, dry_run: bool) -> str:
    prefix = "Dry run: " if dry_run else ""
    installed = report.count(Outcome.INSTALLED)
    skipped = report.count(Outcome.SKIPPED)
    if report.status is ExitStatus.FATAL:
        return f"{prefix}Installation halted after a fatal error"
    if report.status is ExitStatus.ERRORS:
        errors = report.count(Outcome.ERROR)
        return f"{prefix}Installed {installed}, skipped {skipped}, {errors} error(s)"
    return f"{prefix}Installed {installed}, skipped {skipped}"


def render_report(report: Report, *, dry_run: bool, console: Console | None = None) -> None:
    """Print the summary table and status line to stderr."""
    if console is None:
        console = Console(stderr=True)
    if report.reported_entries():
        console.print(build_summary_table(report))
    style = {
        ExitStatus.SUCCESS: "green",
        ExitStatus.ERRORS: "yellow",
        ExitStatus.FATAL: "red",
    }[report.status]
    console.print(status_line(report, dry_run=dry_run), style=style)
