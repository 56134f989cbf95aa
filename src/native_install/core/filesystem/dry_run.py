"""No-op filesystem wrapper for dry-run mode."""

from pathlib import Path

from native_install.core.filesystem.abc import Filesystem


class DryRunFilesystem(Filesystem):
    """Wrapper that delegates reads and turns every mutation into a no-op.

    make_dirs still reports which directories would have been created, so a
    dry run produces the same progress output as a real one.
    """

    def __init__(self, wrapped: Filesystem) -> None:
        """Create a dry-run wrapper around a filesystem.

        Args:
            wrapped: The filesystem to delegate read-only operations to
        """
        self._wrapped = wrapped

    # Read-only: delegate

    def exists(self, path: Path) -> bool:
        return self._wrapped.exists(path)

    def is_dir(self, path: Path) -> bool:
        return self._wrapped.is_dir(path)

    def is_symlink(self, path: Path) -> bool:
        return self._wrapped.is_symlink(path)

    def mtime(self, path: Path) -> float | None:
        return self._wrapped.mtime(path)

    def mode(self, path: Path) -> int:
        return self._wrapped.mode(path)

    def list_tree(self, root: Path) -> tuple[list[Path], list[Path]]:
        return self._wrapped.list_tree(root)

    # Mutations: no-op

    def make_dirs(self, path: Path) -> list[Path]:
        missing: list[Path] = []
        current = path
        while not self._wrapped.exists(current):
            missing.append(current)
            if current.parent == current:
                break
            current = current.parent
        missing.reverse()
        return missing

    def copy_file(self, source: Path, destination: Path) -> None:
        pass

    def chmod(self, path: Path, mode: int) -> None:
        pass

    def symlink(self, target: str, link: Path) -> None:
        pass
