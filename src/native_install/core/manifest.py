"""Discovery of build artifacts and install metadata from Cargo.toml.

Only the parts of the manifest the installer needs are read: the package
name, the `[[bin]]` and `[lib]` products, and the
`[package.metadata.install-targets]` table.
"""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from native_install.core.artifacts import (
    ArtifactKind,
    BuildArtifact,
    executable_name,
    library_file_name,
)
from native_install.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

MANIFEST_NAME = "Cargo.toml"

_CRATE_TYPES: dict[str, ArtifactKind] = {
    "lib": ArtifactKind.RLIB,
    "rlib": ArtifactKind.RLIB,
    "dylib": ArtifactKind.DYLIB,
    "cdylib": ArtifactKind.CDYLIB,
    "staticlib": ArtifactKind.STATICLIB,
    "proc-macro": ArtifactKind.PROC_MACRO,
}


@dataclass(frozen=True)
class Manifest:
    """What the installer knows about a project after reading its manifest."""

    path: Path
    package_name: str
    artifacts: tuple[BuildArtifact, ...]
    metadata: dict[str, Any] = field(default_factory=dict)


def profile_dir(manifest_dir: Path, *, out_dir: Path | None, release: bool) -> Path:
    """Directory that holds the build outputs for the selected profile."""
    base = out_dir if out_dir is not None else manifest_dir / "target"
    if not base.is_absolute():
        base = manifest_dir / base
    return base / ("release" if release else "debug")


def read_manifest_file(path: Path) -> dict[str, Any]:
    """Parse a TOML manifest.

    Raises:
        ConfigurationError: If the file is missing or is not valid TOML
    """
    if not path.exists():
        raise ConfigurationError(f"Manifest not found: {path}")
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid manifest {path}: {e}") from e


def load_manifest(
    manifest_dir: Path,
    *,
    out_dir: Path | None = None,
    release: bool = True,
) -> Manifest:
    """Read Cargo.toml in manifest_dir and list its build artifacts.

    Args:
        manifest_dir: Directory containing Cargo.toml
        out_dir: Build output directory (defaults to `<manifest_dir>/target`)
        release: Look in the release profile directory instead of debug

    Raises:
        ConfigurationError: Missing or malformed manifest, or no [package]
    """
    path = manifest_dir / MANIFEST_NAME
    data = read_manifest_file(path)

    package = data.get("package")
    if not isinstance(package, dict) or not isinstance(package.get("name"), str):
        raise ConfigurationError(f"{path} has no [package] with a name")
    package_name: str = package["name"]

    package_metadata = package.get("metadata", {})
    if not isinstance(package_metadata, dict):
        raise ConfigurationError(f"{path}: package.metadata must be a table")
    metadata = package_metadata.get("install-targets", {})
    if not isinstance(metadata, dict):
        raise ConfigurationError(f"{path}: package.metadata.install-targets must be a table")

    outputs = profile_dir(manifest_dir, out_dir=out_dir, release=release)
    artifacts = [
        *_binaries(data, package_name, manifest_dir, outputs, metadata),
        *_libraries(data, package_name, manifest_dir, outputs, metadata),
    ]
    logger.debug(
        "Manifest %s: %s",
        path,
        [(a.name, a.kind.value) for a in artifacts],
    )
    return Manifest(
        path=path,
        package_name=package_name,
        artifacts=tuple(artifacts),
        metadata=metadata,
    )


def _privileged(metadata: dict[str, Any], name: str) -> bool:
    entry = metadata.get(name)
    return isinstance(entry, dict) and entry.get("privileged") is True


def _binaries(
    data: dict[str, Any],
    package_name: str,
    manifest_dir: Path,
    outputs: Path,
    metadata: dict[str, Any],
) -> list[BuildArtifact]:
    products = data.get("bin")
    if products is None:
        if not (manifest_dir / "src" / "main.rs").exists():
            return []
        products = [{"name": package_name}]
    if not isinstance(products, list):
        raise ConfigurationError("[[bin]] must be an array of tables")

    artifacts: list[BuildArtifact] = []
    for product in products:
        name = product.get("name") if isinstance(product, dict) else None
        if not isinstance(name, str):
            raise ConfigurationError("Every [[bin]] entry needs a name")
        artifacts.append(
            BuildArtifact(
                name=name,
                kind=ArtifactKind.BINARY,
                built_path=outputs / executable_name(name),
                privileged=_privileged(metadata, name),
            )
        )
    return artifacts


def _libraries(
    data: dict[str, Any],
    package_name: str,
    manifest_dir: Path,
    outputs: Path,
    metadata: dict[str, Any],
) -> list[BuildArtifact]:
    lib = data.get("lib")
    if lib is None:
        if not (manifest_dir / "src" / "lib.rs").exists():
            return []
        lib = {}
    if not isinstance(lib, dict):
        raise ConfigurationError("[lib] must be a table")

    name = lib.get("name", package_name.replace("-", "_"))
    if lib.get("proc-macro") is True:
        crate_types = ["proc-macro"]
    else:
        crate_types = lib.get("crate-type", ["lib"])

    artifacts: list[BuildArtifact] = []
    for crate_type in crate_types:
        kind = _CRATE_TYPES.get(crate_type)
        if kind is None:
            raise ConfigurationError(f"Unknown crate-type '{crate_type}' for library {name}")
        file_kind = ArtifactKind.CDYLIB if kind is ArtifactKind.PROC_MACRO else kind
        artifacts.append(
            BuildArtifact(
                name=name,
                kind=kind,
                built_path=outputs / library_file_name(name, file_kind),
                privileged=_privileged(metadata, name),
            )
        )
    return artifacts
