"""Tests for FakeProcessRunner test infrastructure."""

from pathlib import Path

import pytest

from native_install.core.process.abc import SpawnResult
from native_install.core.process.fake import FakeProcessRunner


def test_unconfigured_program_exits_zero() -> None:
    runner = FakeProcessRunner()

    result = runner.spawn("strip", ["/p/bin/tool"])

    assert result == SpawnResult(exit_code=0)
    assert result.success


def test_records_calls_in_order() -> None:
    runner = FakeProcessRunner()

    runner.spawn(Path("/usr/bin/install"), ["-T", "a", "b"], cwd=Path("/work"))
    runner.spawn("hook.sh", [], env={"bindir": "/p/bin"})

    assert [c.program for c in runner.calls] == ["/usr/bin/install", "hook.sh"]
    assert runner.calls[0].args == ("-T", "a", "b")
    assert runner.calls[0].cwd == Path("/work")
    assert runner.calls[0].env is None
    assert runner.calls[1].env == {"bindir": "/p/bin"}


def test_result_by_full_path_beats_file_name() -> None:
    runner = FakeProcessRunner(
        results={
            "/a/hook.sh": SpawnResult(exit_code=2),
            "hook.sh": SpawnResult(exit_code=10),
        }
    )

    assert runner.spawn("/a/hook.sh", []).exit_code == 2
    assert runner.spawn("/b/hook.sh", []).exit_code == 10


def test_signaled_result() -> None:
    runner = FakeProcessRunner(results={"hook.sh": SpawnResult(exit_code=None, signal=15)})

    result = runner.spawn("/p/hook.sh", [])

    assert result.signaled
    assert not result.success


def test_missing_program_raises_but_is_recorded() -> None:
    runner = FakeProcessRunner(missing=["cargo"])

    with pytest.raises(FileNotFoundError):
        runner.spawn("/usr/bin/cargo", ["build"])

    assert len(runner.calls) == 1
