from pathlib import Path

from native_install.core.report import ExitStatus, Outcome, Report, ReportEntry


def _report(*outcomes: Outcome) -> Report:
    report = Report()
    for i, outcome in enumerate(outcomes):
        report.record(ReportEntry(name=f"t{i}", outcome=outcome, message=""))
    return report


def test_empty_report_succeeds() -> None:
    assert Report().status is ExitStatus.SUCCESS


def test_skips_and_runs_succeed() -> None:
    report = _report(Outcome.INSTALLED, Outcome.SKIPPED, Outcome.RAN, Outcome.SKIPPED_SILENT)

    assert report.status is ExitStatus.SUCCESS
    assert [e.name for e in report.reported_entries()] == ["t0", "t1"]


def test_non_fatal_error_gives_errors_status() -> None:
    report = _report(Outcome.INSTALLED, Outcome.ERROR, Outcome.INSTALLED)

    assert report.status is ExitStatus.ERRORS
    assert not report.halted


def test_fatal_halts_and_wins_over_errors() -> None:
    report = _report(Outcome.ERROR, Outcome.FATAL)

    assert report.halted
    assert report.status is ExitStatus.FATAL
    assert int(report.status) == 1


def test_count_by_outcome() -> None:
    report = Report()
    report.record(ReportEntry("a", Outcome.INSTALLED, "installed", destination=Path("/x/a")))
    report.record(ReportEntry("b", Outcome.INSTALLED, "installed"))
    report.record(ReportEntry("c", Outcome.SKIPPED, "up to date"))

    assert report.count(Outcome.INSTALLED) == 2
    assert report.count(Outcome.FATAL) == 0
    assert [e.name for e in report.reported_entries()] == ["a", "b", "c"]
