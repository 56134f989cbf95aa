"""Tests for the native-install command using fakes.

Processes are faked with FakeProcessRunner while files are installed into a
temporary prefix on the real filesystem.
"""

from pathlib import Path

from click.testing import CliRunner

from native_install.cli.cli import cli
from native_install.core.context import InstallContext
from native_install.core.process.abc import SpawnResult
from native_install.core.process.fake import FakeProcessRunner
from tests.fakes.project import write_file, write_project
from tests.fakes.user_feedback import FakeUserFeedback

_HOOK = """
[package.metadata.install-targets.post-install]
type = "run"
target-file = "hooks/post-install.sh"
"""

_BASE_ARGS = ["--internal-install", "--no-strip"]


def _invoke(ctx: InstallContext, prefix: Path, *args: str):
    runner = CliRunner()
    return runner.invoke(cli, [*_BASE_ARGS, "--prefix", str(prefix), *args], obj=ctx)


def test_installs_binary(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    ctx = InstallContext.for_test(cwd=project)
    prefix = tmp_path / "prefix"

    result = _invoke(ctx, prefix)

    assert result.exit_code == 0, result.output
    assert (prefix / "bin" / "tool").read_text(encoding="utf-8") == "#!/bin/sh\necho binary\n"
    assert "Installed 1, skipped 0" in result.output


def test_second_run_skips(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    prefix = tmp_path / "prefix"
    _invoke(InstallContext.for_test(cwd=project), prefix)

    result = _invoke(InstallContext.for_test(cwd=project), prefix)

    assert result.exit_code == 0, result.output
    assert "Installed 0, skipped 1" in result.output


def test_relative_manifest_dir(tmp_path: Path) -> None:
    write_project(tmp_path / "tool")
    ctx = InstallContext.for_test(cwd=tmp_path)
    prefix = tmp_path / "prefix"

    result = _invoke(ctx, prefix, "--manifest-dir", "tool")

    assert result.exit_code == 0, result.output
    assert (prefix / "bin" / "tool").exists()


def test_quiet_success_prints_nothing(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    ctx = InstallContext.for_test(cwd=project)

    result = _invoke(ctx, tmp_path / "prefix", "--quiet")

    assert result.exit_code == 0
    assert result.output == ""


def test_verbose_progress_goes_to_feedback(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    feedback = FakeUserFeedback()
    ctx = InstallContext.for_test(cwd=project, feedback=feedback)
    prefix = tmp_path / "prefix"

    _invoke(ctx, prefix, "--verbose")

    info = feedback.lines("info")
    assert f"-- Creating installation prefix {prefix}" in info
    assert any(line.startswith("-- Installing ") for line in info)


def test_dry_run_changes_nothing(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    ctx = InstallContext.for_test(cwd=project, dry_run=True)
    prefix = tmp_path / "prefix"

    result = _invoke(ctx, prefix, "--dry-run")

    assert result.exit_code == 0, result.output
    assert not prefix.exists()
    assert "Dry run: Installed 1, skipped 0" in result.output


def test_directory_from_environment(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    bindir = tmp_path / "elsewhere" / "bin"
    ctx = InstallContext.for_test(cwd=project, environ={"bindir": str(bindir)})

    result = _invoke(ctx, tmp_path / "prefix")

    assert result.exit_code == 0, result.output
    assert (bindir / "tool").exists()


def test_cli_flag_beats_config_file(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    write_file(
        project / ".native-install" / "config.toml",
        f'[dir]\nbindir = "{tmp_path / "from-config"}"\nlibexecdir = "libexec"\n',
    )
    ctx = InstallContext.for_test(cwd=project)
    prefix = tmp_path / "prefix"

    result = _invoke(ctx, prefix, "--bindir", "programs")

    assert result.exit_code == 0, result.output
    assert (prefix / "programs" / "tool").exists()
    assert not (tmp_path / "from-config").exists()


def test_bad_config_exits_before_installing(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    write_file(project / ".native-install" / "config.toml", '[dir]\nbogusdir = "x"\n')
    ctx = InstallContext.for_test(cwd=project)
    prefix = tmp_path / "prefix"

    result = _invoke(ctx, prefix)

    assert result.exit_code == 1
    assert "Error: " in result.output
    assert "unknown directory 'bogusdir'" in result.output
    assert not prefix.exists()


def test_relative_prefix_is_rejected(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    ctx = InstallContext.for_test(cwd=project)

    result = CliRunner().invoke(cli, [*_BASE_ARGS, "--prefix", "relative/prefix"], obj=ctx)

    assert result.exit_code == 1
    assert "prefix must be an absolute path" in result.output


def test_unknown_target(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    ctx = InstallContext.for_test(cwd=project)

    result = _invoke(ctx, tmp_path / "prefix", "--target", "nope")

    assert result.exit_code == 1
    assert "no such install target" in result.output


def test_invalid_mode(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    ctx = InstallContext.for_test(cwd=project)

    result = _invoke(ctx, tmp_path / "prefix", "--mode", "rwz")

    assert result.exit_code == 1
    assert "Invalid --mode 'rwz'" in result.output


def test_hook_error_exits_two(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool", manifest_extra=_HOOK)
    runner = FakeProcessRunner(results={"post-install.sh": SpawnResult(exit_code=2)})
    ctx = InstallContext.for_test(cwd=project, processes=runner)

    result = _invoke(ctx, tmp_path / "prefix")

    assert result.exit_code == 2
    assert "Installed 1, skipped 0, 1 error(s)" in result.output


def test_fatal_hook_exits_one(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool", manifest_extra=_HOOK)
    runner = FakeProcessRunner(results={"post-install.sh": SpawnResult(exit_code=1)})
    ctx = InstallContext.for_test(cwd=project, processes=runner)

    result = _invoke(ctx, tmp_path / "prefix", "--quiet")

    assert result.exit_code == 1
    assert "Installation halted after a fatal error" in result.output


def test_build_then_install(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    runner = FakeProcessRunner()
    ctx = InstallContext.for_test(cwd=project, processes=runner)
    prefix = tmp_path / "prefix"

    result = _invoke(ctx, prefix, "--build")

    assert result.exit_code == 0, result.output
    assert runner.calls[0].program == "cargo"
    assert runner.calls[0].args == ("build", "--release")
    assert runner.calls[0].env is not None
    assert runner.calls[0].env["prefix"] == str(prefix)
    assert (prefix / "bin" / "tool").exists()


def test_build_only_does_not_install(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool", release=False)
    runner = FakeProcessRunner()
    ctx = InstallContext.for_test(cwd=project, processes=runner)
    prefix = tmp_path / "prefix"

    result = _invoke(ctx, prefix, "--build-only", "--debug")

    assert result.exit_code == 0, result.output
    assert runner.calls[0].args == ("build",)
    assert not prefix.exists()


def test_failed_build_exits_one(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    runner = FakeProcessRunner(results={"cargo": SpawnResult(exit_code=101)})
    ctx = InstallContext.for_test(cwd=project, processes=runner)

    result = _invoke(ctx, tmp_path / "prefix", "--build")

    assert result.exit_code == 1
    assert "Build failed with exit code 101" in result.output


def test_no_privileged_skips_privileged_binary(tmp_path: Path) -> None:
    project = write_project(
        tmp_path / "tool",
        manifest_extra="\n[package.metadata.install-targets.tool]\nprivileged = true\n",
    )
    ctx = InstallContext.for_test(cwd=project)
    prefix = tmp_path / "prefix"

    result = _invoke(ctx, prefix, "--no-privileged")

    assert result.exit_code == 0, result.output
    assert not (prefix / "sbin" / "tool").exists()
    assert "Installed 0, skipped 1" in result.output


def test_no_sbin_installs_privileged_binary_to_bindir(tmp_path: Path) -> None:
    project = write_project(
        tmp_path / "tool",
        manifest_extra="\n[package.metadata.install-targets.tool]\nprivileged = true\n",
    )
    ctx = InstallContext.for_test(cwd=project)
    prefix = tmp_path / "prefix"

    result = _invoke(ctx, prefix, "--no-sbin")

    assert result.exit_code == 0, result.output
    assert (prefix / "bin" / "tool").exists()


def test_missing_install_program_fails_before_installing(tmp_path: Path) -> None:
    project = write_project(tmp_path / "tool")
    prefix = tmp_path / "prefix"
    args = ["--no-strip", "--install", str(tmp_path / "no-such-install"), "--prefix", str(prefix)]

    dry = CliRunner().invoke(cli, [*args, "--dry-run"], obj=InstallContext.for_test(cwd=project))
    real = CliRunner().invoke(cli, args, obj=InstallContext.for_test(cwd=project))

    assert dry.exit_code == real.exit_code == 1
    assert "Program not found" in real.output
    assert dry.output == real.output
    assert not prefix.exists()
