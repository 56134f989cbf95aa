"""Process spawning capability.

Provides the narrow `spawn` interface used for run targets and for the
external install/strip/build programs, with real, dry-run and fake
implementations.
"""

from native_install.core.process.abc import ProcessRunner, SpawnResult
from native_install.core.process.dry_run import DryRunProcessRunner
from native_install.core.process.real import RealProcessRunner

__all__ = [
    "ProcessRunner",
    "SpawnResult",
    "RealProcessRunner",
    "DryRunProcessRunner",
]
