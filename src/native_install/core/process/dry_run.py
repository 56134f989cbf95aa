"""No-op process runner for dry-run mode."""

from collections.abc import Mapping, Sequence
from pathlib import Path

from native_install.core.process.abc import ProcessRunner, SpawnResult


class DryRunProcessRunner(ProcessRunner):
    """Wrapper that never starts a process.

    Every spawn reports a clean exit, so a dry run follows the same path
    through the installer as a run in which every program succeeds.
    """

    def __init__(self, wrapped: ProcessRunner) -> None:
        """Create a dry-run wrapper around a process runner.

        Args:
            wrapped: The runner that would be used outside dry-run mode
        """
        self._wrapped = wrapped

    def spawn(
        self,
        program: str | Path,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> SpawnResult:
        """No-op for spawning in dry-run mode."""
        return SpawnResult(exit_code=0)
