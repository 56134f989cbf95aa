"""Fake process runner for testing.

FakeProcessRunner records every spawn and answers with preconfigured
results, without starting any process.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path

from native_install.core.process.abc import ProcessRunner, SpawnResult


@dataclass(frozen=True)
class SpawnCall:
    program: str
    args: tuple[str, ...]
    cwd: Path | None
    env: dict[str, str] | None


class FakeProcessRunner(ProcessRunner):
    """In-memory fake that tracks calls instead of spawning.

    Results are looked up by program (as a string, then by its file name);
    anything unconfigured exits 0. Programs listed in `missing` raise
    FileNotFoundError, like an executable that does not exist.

    Example:
        runner = FakeProcessRunner(results={"hook.sh": SpawnResult(exit_code=2)})
        runner.spawn(Path("/project/hook.sh"), [])
        assert runner.calls[0].program == "/project/hook.sh"
    """

    def __init__(
        self,
        *,
        results: Mapping[str, SpawnResult] | None = None,
        missing: Sequence[str] = (),
    ) -> None:
        self._results = dict(results or {})
        self._missing = set(missing)
        self._calls: list[SpawnCall] = []

    @property
    def calls(self) -> list[SpawnCall]:
        """Spawn calls in order. This property is for test assertions only."""
        return self._calls

    def spawn(
        self,
        program: str | Path,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> SpawnResult:
        key = str(program)
        self._calls.append(
            SpawnCall(
                program=key,
                args=tuple(args),
                cwd=cwd,
                env=dict(env) if env is not None else None,
            )
        )
        name = Path(key).name
        if key in self._missing or name in self._missing:
            raise FileNotFoundError(f"No such file or directory: '{key}'")
        if key in self._results:
            return self._results[key]
        return self._results.get(name, SpawnResult(exit_code=0))
