"""Build artifacts produced by the build system, and their platform file names."""

import sys
from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class ArtifactKind(Enum):
    BINARY = "binary"
    STATICLIB = "staticlib"
    CDYLIB = "cdylib"
    DYLIB = "dylib"
    RLIB = "rlib"
    PROC_MACRO = "proc-macro"


@dataclass(frozen=True)
class BuildArtifact:
    """One compiled output of the project.

    A library that is built in several forms appears once per form, all
    sharing the same name.
    """

    name: str
    kind: ArtifactKind
    built_path: Path
    privileged: bool = False


def executable_name(name: str) -> str:
    if sys.platform == "win32":
        return f"{name}.exe"
    return name


def library_file_name(base: str, kind: ArtifactKind, prefix: str | None = None) -> str:
    """Return the conventional file name of a library form on this platform.

    prefix replaces the platform file-name prefix (`lib`, or nothing for
    Windows libraries).
    """
    if prefix is None:
        prefix = "lib" if kind is ArtifactKind.RLIB or sys.platform != "win32" else ""
    if kind is ArtifactKind.RLIB:
        extension = "rlib"
    elif sys.platform == "win32":
        extension = "lib" if kind is ArtifactKind.STATICLIB else "dll"
    elif kind is ArtifactKind.STATICLIB:
        extension = "a"
    elif sys.platform == "darwin":
        extension = "dylib"
    else:
        extension = "so"
    return f"{prefix}{base}.{extension}"
