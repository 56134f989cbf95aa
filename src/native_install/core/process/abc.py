"""Abstract interface for spawning child processes."""

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SpawnResult:
    """How a child process terminated: an exit code, or the signal that killed it."""

    exit_code: int | None
    signal: int | None = None

    @property
    def signaled(self) -> bool:
        return self.signal is not None

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class ProcessRunner(ABC):
    """Abstract interface for running external programs.

    Calls block until the child exits or is killed; there is no timeout.
    """

    @abstractmethod
    def spawn(
        self,
        program: str | Path,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> SpawnResult:
        """Run program with args and wait for it.

        Args:
            program: Executable path, or a bare name looked up on PATH
            args: Arguments after the program name
            cwd: Working directory, or None for the current directory
            env: Complete environment for the child, or None to inherit

        Returns:
            SpawnResult describing how the child terminated

        Raises:
            OSError: If the program cannot be started
        """
        ...
