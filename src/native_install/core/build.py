"""Nested build invocation with the directory environment.

The build tool sees one environment variable per installation directory, so
a build script can bake the final install locations into the program.
"""

import logging
from collections.abc import Mapping
from pathlib import Path

from native_install.core.context import InstallContext
from native_install.core.dirs import DirectoryTable
from native_install.core.errors import ExecutionError

logger = logging.getLogger(__name__)

BUILD_PROGRAM = "cargo"


def build_command(*, release: bool, out_dir: Path | None, verbose: bool) -> list[str]:
    """Arguments passed to the build program."""
    args = ["build"]
    if release:
        args.append("--release")
    if out_dir is not None:
        args += ["--target-dir", str(out_dir)]
    if verbose:
        args.append("--verbose")
    return args


def build_environment(table: DirectoryTable, base: Mapping[str, str]) -> dict[str, str]:
    env = dict(base)
    env.update(table.environment())
    return env


def run_build(
    ctx: InstallContext,
    manifest_dir: Path,
    table: DirectoryTable,
    *,
    release: bool,
    out_dir: Path | None = None,
    verbose: bool = False,
    program: str = BUILD_PROGRAM,
) -> None:
    """Build the project in manifest_dir before installing it.

    Raises:
        ExecutionError: If the build program cannot be started or fails
    """
    args = build_command(release=release, out_dir=out_dir, verbose=verbose)
    ctx.feedback.info(f"-- Building: {program} {' '.join(args)}")
    logger.debug("Build in %s", manifest_dir)
    try:
        result = ctx.processes.spawn(
            program,
            args,
            cwd=manifest_dir,
            env=build_environment(table, ctx.environ),
        )
    except OSError as e:
        raise ExecutionError(f"Failed to run {program}: {e.strerror or e}") from e

    if result.signaled:
        raise ExecutionError(f"Build terminated by signal {result.signal}")
    if not result.success:
        raise ExecutionError(f"Build failed with exit code {result.exit_code}")
