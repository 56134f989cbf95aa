"""Lookup helpers for asserting on install reports."""

from native_install.core.report import Report, ReportEntry


def entry_named(report: Report, name: str) -> ReportEntry | None:
    """Return the report entry recorded for the named target, if any."""
    for entry in report.entries:
        if entry.name == name:
            return entry
    return None
