"""Install target records."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from native_install.core.modes import ModeSpec


class TargetKind(Enum):
    BIN = "bin"
    SBIN = "sbin"
    LIBRARY = "library"
    SHARED = "shared"
    LIBEXEC = "libexec"
    INCLUDE = "include"
    DATA = "data"
    DOC = "doc"
    MAN = "man"
    INFO = "info"
    SYSCONFIG = "sysconfig"
    RUN = "run"

    @property
    def is_binary(self) -> bool:
        """Programs: stripped after copy and allowed execute bits."""
        return self in (TargetKind.BIN, TargetKind.SBIN, TargetKind.LIBEXEC)


@dataclass(frozen=True)
class InstallTarget:
    """Fully populated, immutable description of one install target.

    For non-run targets `install_dir` is the absolute directory that a
    relative `installed_path` is expanded against, and `destination` is the
    absolute installed location. For run targets `install_dir` is the
    working directory, and only set when given explicitly.

    Excluded targets keep only their name; every other field is meaningless
    and `kind` is None.
    """

    name: str
    kind: TargetKind | None
    privileged: bool = False
    is_directory: bool = False
    install_dir: Path | None = None
    mode: ModeSpec | None = None
    installed_path: str | None = None
    destination: Path | None = None
    source_file: Path | None = None
    aliases: tuple[str, ...] = ()
    excluded: bool = False
