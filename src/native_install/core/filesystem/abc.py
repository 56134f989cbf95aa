"""Abstract interface for the filesystem operations the installer performs."""

from abc import ABC, abstractmethod
from pathlib import Path


class Filesystem(ABC):
    """Abstract interface for filesystem reads and mutations.

    Read operations never change anything and are shared by dry-run mode.
    Mutations raise OSError on failure.
    """

    @abstractmethod
    def exists(self, path: Path) -> bool:
        """Return True if anything exists at path, including a dangling symlink."""
        ...

    @abstractmethod
    def is_dir(self, path: Path) -> bool:
        """Return True if path is a directory (following symlinks)."""
        ...

    @abstractmethod
    def is_symlink(self, path: Path) -> bool:
        """Return True if path itself is a symbolic link."""
        ...

    @abstractmethod
    def mtime(self, path: Path) -> float | None:
        """Return the modification time of path, or None if it does not exist."""
        ...

    @abstractmethod
    def mode(self, path: Path) -> int:
        """Return the permission bits of path."""
        ...

    @abstractmethod
    def list_tree(self, root: Path) -> tuple[list[Path], list[Path]]:
        """List the contents of a directory tree.

        Returns:
            (directories, files) relative to root, both sorted, parents
            before children
        """
        ...

    @abstractmethod
    def make_dirs(self, path: Path) -> list[Path]:
        """Create path and any missing parents.

        Returns:
            The directories that did not exist, outermost first
        """
        ...

    @abstractmethod
    def copy_file(self, source: Path, destination: Path) -> None:
        """Copy a file, preserving its modification time and permission bits."""
        ...

    @abstractmethod
    def chmod(self, path: Path, mode: int) -> None:
        """Set the permission bits of path."""
        ...

    @abstractmethod
    def symlink(self, target: str, link: Path) -> None:
        """Create a symbolic link at link pointing to target.

        An existing symbolic link at link is replaced.
        """
        ...
