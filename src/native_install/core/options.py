"""Execution options handed from the command line to the engine."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from native_install.core.modes import ModeSpec


class PrivilegeFilter(Enum):
    """How privileged targets are treated.

    ALLOW installs them like any other target. EXCLUDE_USER_PREFIX skips them
    (reported) because the install goes to a user-local prefix. FORCE_INCLUDE
    installs them even then. EXCLUDE always skips them.
    """

    ALLOW = "allow"
    EXCLUDE_USER_PREFIX = "exclude-user-prefix"
    FORCE_INCLUDE = "force-include"
    EXCLUDE = "exclude"

    def skips(self) -> bool:
        return self in (PrivilegeFilter.EXCLUDE_USER_PREFIX, PrivilegeFilter.EXCLUDE)


@dataclass(frozen=True)
class InstallOptions:
    """Everything that changes how the engine performs a plan.

    Attributes:
        dry_run: Report what would happen without touching anything
        verbose: Print per-step detail and set _VERBOSE for run targets
        force: Install even when the destination is up to date
        no_create: Do not create missing parent directories
        mode_override: Replaces every target's mode when set
        strip_program: Program run on installed binaries, or None to skip
        install_program: Program used for single-file copies, or None for
            the native copy
        target_filter: Only this target is installed when set
        privilege_filter: Treatment of privileged targets
        umask: Umask for mode clauses without a who-list (None = process umask)
    """

    dry_run: bool = False
    verbose: bool = False
    force: bool = False
    no_create: bool = False
    mode_override: ModeSpec | None = None
    strip_program: Path | None = None
    install_program: Path | None = None
    target_filter: str | None = None
    privilege_filter: PrivilegeFilter = PrivilegeFilter.ALLOW
    umask: int | None = None
