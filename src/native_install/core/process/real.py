"""Production process runner using subprocess."""

import logging
import subprocess
from collections.abc import Mapping, Sequence
from pathlib import Path

from native_install.core.process.abc import ProcessRunner, SpawnResult

logger = logging.getLogger(__name__)


class RealProcessRunner(ProcessRunner):
    """Runs programs with subprocess.run, inheriting stdio."""

    def spawn(
        self,
        program: str | Path,
        args: Sequence[str],
        *,
        cwd: Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> SpawnResult:
        cmd = [str(program), *args]
        logger.debug("Spawning %s (cwd=%s)", cmd, cwd)
        result = subprocess.run(
            cmd,
            cwd=cwd,
            env=dict(env) if env is not None else None,
            check=False,
        )
        # subprocess reports death by signal N as returncode -N
        if result.returncode < 0:
            return SpawnResult(exit_code=None, signal=-result.returncode)
        return SpawnResult(exit_code=result.returncode)
