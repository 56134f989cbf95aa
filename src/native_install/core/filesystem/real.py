"""Production filesystem implementation."""

import os
import shutil
from pathlib import Path

from native_install.core.filesystem.abc import Filesystem


class RealFilesystem(Filesystem):
    """Filesystem operations backed by os, pathlib and shutil."""

    def exists(self, path: Path) -> bool:
        return os.path.lexists(path)

    def is_dir(self, path: Path) -> bool:
        return path.is_dir()

    def is_symlink(self, path: Path) -> bool:
        return path.is_symlink()

    def mtime(self, path: Path) -> float | None:
        if not path.exists():
            return None
        return path.stat().st_mtime

    def mode(self, path: Path) -> int:
        return path.stat().st_mode & 0o7777

    def list_tree(self, root: Path) -> tuple[list[Path], list[Path]]:
        directories: list[Path] = []
        files: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(root):
            dirnames.sort()
            base = Path(dirpath).relative_to(root)
            directories.extend(base / name for name in dirnames)
            files.extend(base / name for name in sorted(filenames))
        return directories, files

    def make_dirs(self, path: Path) -> list[Path]:
        missing = _missing_ancestors(path)
        if missing:
            path.mkdir(parents=True, exist_ok=True)
        return missing

    def copy_file(self, source: Path, destination: Path) -> None:
        shutil.copy2(source, destination)

    def chmod(self, path: Path, mode: int) -> None:
        path.chmod(mode)

    def symlink(self, target: str, link: Path) -> None:
        if link.is_symlink():
            link.unlink()
        link.symlink_to(target)


def _missing_ancestors(path: Path) -> list[Path]:
    missing: list[Path] = []
    current = path
    while not current.exists():
        missing.append(current)
        if current.parent == current:
            break
        current = current.parent
    missing.reverse()
    return missing
