"""Install context with dependency injection."""

import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from native_install.core.filesystem.abc import Filesystem
from native_install.core.filesystem.dry_run import DryRunFilesystem
from native_install.core.filesystem.real import RealFilesystem
from native_install.core.process.abc import ProcessRunner
from native_install.core.process.dry_run import DryRunProcessRunner
from native_install.core.process.real import RealProcessRunner
from native_install.core.user_feedback import InteractiveFeedback, QuietFeedback, UserFeedback


@dataclass(frozen=True)
class InstallContext:
    """Immutable context holding all dependencies for an install run.

    Created at the CLI entry point and threaded through every component.
    Frozen to prevent accidental modification at runtime.
    """

    filesystem: Filesystem
    processes: ProcessRunner
    feedback: UserFeedback
    cwd: Path  # Current working directory at CLI invocation
    environ: Mapping[str, str] = field(default_factory=dict)
    dry_run: bool = False

    @staticmethod
    def for_test(
        filesystem: Filesystem | None = None,
        processes: ProcessRunner | None = None,
        feedback: UserFeedback | None = None,
        cwd: Path | None = None,
        environ: Mapping[str, str] | None = None,
        dry_run: bool = False,
    ) -> "InstallContext":
        """Create test context with optional pre-configured capabilities.

        Args:
            filesystem: Optional Filesystem. If None, uses RealFilesystem
                (tests point it at tmp_path).
            processes: Optional ProcessRunner. If None, creates an empty
                FakeProcessRunner.
            feedback: Optional UserFeedback. If None, creates FakeUserFeedback.
            cwd: Optional working directory. If None, uses
                Path("/test/default/cwd").
            environ: Optional base environment. If None, empty.
            dry_run: Whether to wrap capabilities in dry-run wrappers.

        Returns:
            InstallContext configured with provided values and test defaults

        Example:
            >>> runner = FakeProcessRunner(results={"hook.sh": SpawnResult(exit_code=2)})
            >>> ctx = InstallContext.for_test(processes=runner, cwd=tmp_path)
        """
        from tests.fakes.user_feedback import FakeUserFeedback

        from native_install.core.process.fake import FakeProcessRunner

        if filesystem is None:
            filesystem = RealFilesystem()

        if processes is None:
            processes = FakeProcessRunner()

        if feedback is None:
            feedback = FakeUserFeedback()

        # Apply dry-run wrappers if needed (matching production behavior)
        if dry_run:
            filesystem = DryRunFilesystem(filesystem)
            processes = DryRunProcessRunner(processes)

        return InstallContext(
            filesystem=filesystem,
            processes=processes,
            feedback=feedback,
            cwd=cwd or Path("/test/default/cwd"),
            environ=dict(environ or {}),
            dry_run=dry_run,
        )


def create_context(*, dry_run: bool, quiet: bool = False, cwd: Path | None = None) -> InstallContext:
    """Create production context with real implementations.

    Args:
        dry_run: If True, wrap the filesystem and process runner so that no
            mutation happens
        quiet: If True, use QuietFeedback to suppress progress output
        cwd: Working directory (defaults to the process's current directory)

    Returns:
        InstallContext with real implementations, wrapped in dry-run
        wrappers if dry_run=True
    """
    filesystem: Filesystem = RealFilesystem()
    processes: ProcessRunner = RealProcessRunner()
    if dry_run:
        filesystem = DryRunFilesystem(filesystem)
        processes = DryRunProcessRunner(processes)

    feedback: UserFeedback = QuietFeedback() if quiet else InteractiveFeedback()

    return InstallContext(
        filesystem=filesystem,
        processes=processes,
        feedback=feedback,
        cwd=cwd if cwd is not None else Path.cwd(),
        environ=dict(os.environ),
        dry_run=dry_run,
    )
