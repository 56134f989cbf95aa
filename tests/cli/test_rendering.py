"""Tests for the end-of-run summary."""

from io import StringIO
from pathlib import Path

from rich.console import Console

from native_install.cli.rendering import build_summary_table, render_report, status_line
from native_install.core.report import Outcome, Report, ReportEntry


def _report(*entries: ReportEntry) -> Report:
    report = Report()
    for entry in entries:
        report.record(entry)
    return report


def _render(report: Report, *, dry_run: bool = False) -> str:
    buffer = StringIO()
    console = Console(file=buffer, width=200, color_system=None)
    render_report(report, dry_run=dry_run, console=console)
    return buffer.getvalue()


def test_table_leaves_out_unreported_outcomes() -> None:
    report = _report(
        ReportEntry("tool", Outcome.INSTALLED, "installed to /p/bin/tool", Path("/p/bin/tool")),
        ReportEntry("hook", Outcome.RAN, "completed"),
        ReportEntry("quiet-hook", Outcome.SKIPPED_SILENT, "exited with code 20"),
        ReportEntry("readme", Outcome.SKIPPED, "up to date", Path("/p/share/doc/README.md")),
    )

    table = build_summary_table(report)

    assert table.row_count == 2


def test_render_shows_destination_for_skips() -> None:
    report = _report(
        ReportEntry("readme", Outcome.SKIPPED, "up to date", Path("/p/share/doc/README.md")),
    )

    output = _render(report)

    assert "readme" in output
    assert "up to date (/p/share/doc/README.md)" in output
    assert "Installed 0, skipped 1" in output


def test_status_lines() -> None:
    ok = _report(ReportEntry("a", Outcome.INSTALLED, "installed"))
    errors = _report(
        ReportEntry("a", Outcome.INSTALLED, "installed"),
        ReportEntry("b", Outcome.ERROR, "exited with code 2"),
    )
    fatal = _report(ReportEntry("a", Outcome.FATAL, "exited with code 1"))

    assert status_line(ok, dry_run=False) == "Installed 1, skipped 0"
    assert status_line(errors, dry_run=False) == "Installed 1, skipped 0, 1 error(s)"
    assert status_line(fatal, dry_run=False) == "Installation halted after a fatal error"
    assert status_line(ok, dry_run=True) == "Dry run: Installed 1, skipped 0"


def test_empty_report_prints_only_status() -> None:
    output = _render(Report(), dry_run=True)

    assert output.strip() == "Dry run: Installed 0, skipped 0"
