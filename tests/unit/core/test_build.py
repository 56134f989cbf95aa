"""Tests for the nested build invocation."""

from pathlib import Path

import pytest

from native_install.core.build import build_command, run_build
from native_install.core.context import InstallContext
from native_install.core.dirs import resolve_directories
from native_install.core.errors import ExecutionError
from native_install.core.process.abc import SpawnResult
from native_install.core.process.fake import FakeProcessRunner


def _table():
    return resolve_directories(
        cli_flags={"prefix": "/opt/tool"}, env_vars={}, config_dirs={}, package_name="tool"
    )


def test_build_command() -> None:
    assert build_command(release=True, out_dir=None, verbose=False) == ["build", "--release"]
    assert build_command(release=False, out_dir=Path("/tmp/out"), verbose=True) == [
        "build",
        "--target-dir",
        "/tmp/out",
        "--verbose",
    ]


def test_build_runs_in_manifest_dir_with_directory_environment() -> None:
    runner = FakeProcessRunner()
    ctx = InstallContext.for_test(processes=runner, environ={"HOME": "/home/u"})

    run_build(ctx, Path("/project"), _table(), release=True)

    call = runner.calls[0]
    assert call.program == "cargo"
    assert call.args == ("build", "--release")
    assert call.cwd == Path("/project")
    assert call.env is not None
    assert call.env["HOME"] == "/home/u"
    assert call.env["bindir"] == "/opt/tool/bin"
    assert call.env["sysconfdir"] == "/etc/opt/tool"


def test_build_failure() -> None:
    runner = FakeProcessRunner(results={"cargo": SpawnResult(exit_code=101)})
    ctx = InstallContext.for_test(processes=runner)

    with pytest.raises(ExecutionError, match="Build failed with exit code 101"):
        run_build(ctx, Path("/project"), _table(), release=True)


def test_build_killed_by_signal() -> None:
    runner = FakeProcessRunner(results={"cargo": SpawnResult(exit_code=None, signal=9)})
    ctx = InstallContext.for_test(processes=runner)

    with pytest.raises(ExecutionError, match="terminated by signal 9"):
        run_build(ctx, Path("/project"), _table(), release=True)


def test_missing_build_program() -> None:
    ctx = InstallContext.for_test(processes=FakeProcessRunner(missing=["cargo"]))

    with pytest.raises(ExecutionError, match="Failed to run cargo"):
        run_build(ctx, Path("/project"), _table(), release=True)
