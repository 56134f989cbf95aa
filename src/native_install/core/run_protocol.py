"""Invocation contract for `run` targets.

A run target executes a program instead of copying a file. The program gets
no arguments. Its environment is the installer's own, overlaid with one
variable per installation directory (`bindir=/usr/local/bin`, ...), plus
`_VERBOSE=1` in verbose mode. Its exit status is interpreted as follows:

    0     success            continue, nothing reported
    1     fatal error        reported, installation halts
    2     non-fatal error    reported, installation continues
    10    skipped            reported, installation continues
    20    skipped silently   continue, nothing reported
    other fatal error        reported, installation halts
    signal fatal error       reported, installation halts

Codes without a defined meaning are reserved and therefore fatal.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from native_install.core.dirs import DirectoryTable
from native_install.core.errors import ExecutionError
from native_install.core.process.abc import ProcessRunner, SpawnResult
from native_install.core.report import Outcome

logger = logging.getLogger(__name__)

VERBOSE_VARIABLE = "_VERBOSE"


class RunOutcome(Enum):
    SUCCESS = "success"
    ERROR_FATAL = "error-fatal"
    ERROR_NON_FATAL = "error-non-fatal"
    SKIPPED_REPORTED = "skipped"
    SKIPPED_SILENT = "skipped-silent"
    SIGNALED = "signaled"

    def to_outcome(self) -> Outcome:
        return _REPORT_OUTCOMES[self]


_REPORT_OUTCOMES: dict[RunOutcome, Outcome] = {
    RunOutcome.SUCCESS: Outcome.RAN,
    RunOutcome.ERROR_FATAL: Outcome.FATAL,
    RunOutcome.ERROR_NON_FATAL: Outcome.ERROR,
    RunOutcome.SKIPPED_REPORTED: Outcome.SKIPPED,
    RunOutcome.SKIPPED_SILENT: Outcome.SKIPPED_SILENT,
    RunOutcome.SIGNALED: Outcome.FATAL,
}

_EXIT_CODES: dict[int, RunOutcome] = {
    0: RunOutcome.SUCCESS,
    1: RunOutcome.ERROR_FATAL,
    2: RunOutcome.ERROR_NON_FATAL,
    10: RunOutcome.SKIPPED_REPORTED,
    20: RunOutcome.SKIPPED_SILENT,
}


@dataclass(frozen=True)
class RunResult:
    outcome: RunOutcome
    exit_code: int | None
    signal: int | None

    def describe(self) -> str:
        if self.signal is not None:
            return f"terminated by signal {self.signal}"
        if self.outcome is RunOutcome.SKIPPED_REPORTED:
            return "skipped"
        if self.outcome is RunOutcome.SUCCESS:
            return "completed"
        return f"exited with code {self.exit_code}"


def classify(result: SpawnResult) -> RunOutcome:
    """Map a child's termination to a RunOutcome."""
    if result.signal is not None:
        return RunOutcome.SIGNALED
    if result.exit_code is None:
        return RunOutcome.ERROR_FATAL
    return _EXIT_CODES.get(result.exit_code, RunOutcome.ERROR_FATAL)


def build_environment(
    table: DirectoryTable,
    base: Mapping[str, str],
    *,
    verbose: bool,
) -> dict[str, str]:
    """Return the child environment: base, directory block, verbosity flag."""
    env = dict(base)
    env.update(table.environment())
    if verbose:
        env[VERBOSE_VARIABLE] = "1"
    else:
        env.pop(VERBOSE_VARIABLE, None)
    return env


def working_directory(install_dir: Path | None, cwd: Path) -> Path:
    """Working directory for a run target: its install-dir if given, else cwd."""
    if install_dir is not None:
        return install_dir
    return cwd


def invoke(
    processes: ProcessRunner,
    program: Path,
    *,
    cwd: Path,
    env: Mapping[str, str],
) -> RunResult:
    """Run a hook program and classify how it ended.

    Raises:
        ExecutionError: If the program cannot be started
    """
    logger.debug("Running hook %s in %s", program, cwd)
    try:
        result = processes.spawn(program, [], cwd=cwd, env=env)
    except OSError as e:
        raise ExecutionError(f"Failed to run {program}: {e.strerror or e}") from e
    outcome = classify(result)
    logger.debug("Hook %s: %s (exit=%s signal=%s)", program, outcome.value, result.exit_code, result.signal)
    return RunResult(outcome=outcome, exit_code=result.exit_code, signal=result.signal)
