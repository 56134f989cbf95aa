"""Filesystem capability used by the execution engine."""

from native_install.core.filesystem.abc import Filesystem
from native_install.core.filesystem.dry_run import DryRunFilesystem
from native_install.core.filesystem.real import RealFilesystem

__all__ = ["Filesystem", "RealFilesystem", "DryRunFilesystem"]
