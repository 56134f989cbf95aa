"""Construction of the install target catalog.

Implicit targets come from build artifacts and get per-kind defaults. Explicit
metadata entries override those defaults field by field, or describe targets
that have no artifact at all (documentation, data directories, run hooks).
Everything is validated here, before execution starts, so that a bad entry
never leaves a partial install behind.
"""

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from native_install.core.artifacts import (
    ArtifactKind,
    BuildArtifact,
    executable_name,
    library_file_name,
)
from native_install.core.dirs import DirectoryTable
from native_install.core.errors import CatalogError
from native_install.core.metadata import TargetOverride, parse_metadata
from native_install.core.modes import BINARY_MODE, FILE_MODE, ModeSpec
from native_install.core.targets import InstallTarget, TargetKind
from native_install.core.tokens import PathResolver

logger = logging.getLogger(__name__)

# Appended to the library name when both forms are built.
LIBRARY_SUFFIXES: dict[ArtifactKind, str] = {
    ArtifactKind.STATICLIB: "-staticlib",
    ArtifactKind.CDYLIB: "-cdylib",
}

_LIBRARY_KINDS: dict[ArtifactKind, TargetKind] = {
    ArtifactKind.STATICLIB: TargetKind.LIBRARY,
    ArtifactKind.CDYLIB: TargetKind.SHARED,
}


@dataclass(frozen=True)
class CatalogPolicy:
    """Options that change where target kinds install by default."""

    no_libexec: bool = False
    no_sbin: bool = False
    shared_as_library: bool = True

    def default_dir(self, kind: TargetKind) -> str:
        """Return the directory name a kind installs into by default."""
        if kind is TargetKind.SBIN:
            return "bindir" if self.no_sbin else "sbindir"
        if kind is TargetKind.LIBEXEC:
            return "bindir" if self.no_libexec else "libexecdir"
        if kind is TargetKind.SHARED:
            return "libdir" if self.shared_as_library else "bindir"
        return _KIND_DIRS[kind]


_KIND_DIRS: dict[TargetKind, str] = {
    TargetKind.BIN: "bindir",
    TargetKind.LIBRARY: "libdir",
    TargetKind.INCLUDE: "includedir",
    TargetKind.DATA: "datadir",
    TargetKind.DOC: "docdir",
    TargetKind.MAN: "mandir",
    TargetKind.INFO: "infodir",
    TargetKind.SYSCONFIG: "sysconfdir",
}


@dataclass
class TargetBuilder:
    """Mutable accumulator of target fields, turned into an InstallTarget by build()."""

    name: str
    implicit: bool = False
    kind: TargetKind | None = None
    privileged: bool = False
    directory: bool = False
    install_dir: str | None = None
    mode: ModeSpec | None = None
    installed_path: str | None = None
    target_file: str | None = None
    aliases: tuple[str, ...] = ()
    exclude: bool = False
    file_name: str | None = None
    library: tuple[str, ArtifactKind] | None = None
    prefix: str | None = None

    def apply(self, override: TargetOverride) -> None:
        """Overlay the fields that the metadata entry spells out."""
        if override.is_set("type"):
            self.kind = override.type
        if override.is_set("privileged"):
            self.privileged = override.privileged
        if override.is_set("directory"):
            self.directory = override.directory
        if override.is_set("install_dir"):
            self.install_dir = override.install_dir
        if override.is_set("mode") and override.mode is not None:
            self.mode = ModeSpec.parse(override.mode)
        if override.is_set("installed_path"):
            self.installed_path = override.installed_path
        if override.is_set("target_file"):
            self.target_file = override.target_file
        if override.is_set("installed_aliases"):
            self.aliases = override.installed_aliases
        if override.is_set("exclude"):
            self.exclude = override.exclude
        if override.is_set("prefix"):
            self.prefix = override.prefix

    def build(
        self,
        resolver: PathResolver,
        policy: CatalogPolicy,
        base_dir: Path,
        check_sources: bool,
    ) -> InstallTarget:
        """Resolve defaults and validate, producing an immutable target.

        Raises:
            CatalogError: Missing type or source file
            ConfigurationError: Invalid substitution tokens in paths
        """
        if self.exclude:
            return InstallTarget(name=self.name, kind=None, excluded=True)

        kind = self.kind
        if kind is None:
            if not self.implicit:
                raise CatalogError(self.name, "no type given and no build artifact of that name")
            kind = TargetKind.SBIN if self.privileged else TargetKind.BIN

        if kind is TargetKind.RUN:
            return self._build_run(base_dir)

        source = self._resolve_source(base_dir)
        if check_sources:
            self._check_source(source)

        default_dir = resolver.table[policy.default_dir(kind)]
        if self.install_dir is not None:
            install_dir = resolver.expand(self.install_dir, base_dir=default_dir)
        else:
            install_dir = default_dir

        # Only paths written in the manifest may not start with a bare *dir name
        installed_path = self.installed_path
        explicit_path = installed_path is not None
        if installed_path is None:
            installed_path = self._default_file_name(source)
        destination = resolver.expand(
            installed_path, base_dir=install_dir, check_bare=explicit_path
        )

        mode = self.mode
        if mode is None:
            mode = BINARY_MODE if kind.is_binary else FILE_MODE

        return InstallTarget(
            name=self.name,
            kind=kind,
            privileged=self.privileged,
            is_directory=self.directory,
            install_dir=install_dir,
            mode=mode,
            installed_path=installed_path,
            destination=destination,
            source_file=source,
            aliases=self.aliases,
        )

    def _default_file_name(self, source: Path | None) -> str:
        if self.library is not None:
            base, kind = self.library
            return library_file_name(base, kind, prefix=self.prefix)
        if self.file_name is not None:
            return self.file_name
        return source.name if source is not None else ""

    def _resolve_source(self, base_dir: Path) -> Path | None:
        if self.target_file is None:
            return None
        path = Path(self.target_file)
        if not path.is_absolute():
            path = base_dir / path
        return path

    def _check_source(self, source: Path | None) -> None:
        if self.directory:
            if source is not None and not source.is_dir():
                raise CatalogError(self.name, f"source directory not found: {source}")
            return
        if source is None:
            raise CatalogError(self.name, "no target-file given, and the target is not a directory")
        if not source.is_file():
            raise CatalogError(self.name, f"missing required source file: {source}")

    def _build_run(self, base_dir: Path) -> InstallTarget:
        if self.target_file is None:
            raise CatalogError(self.name, "run targets require a target-file")

        program = Path(self.target_file)
        if not program.is_absolute() and len(program.parts) > 1:
            program = base_dir / program
        elif not program.is_absolute() and (base_dir / program).is_file():
            program = base_dir / program

        working_dir: Path | None = None
        if self.install_dir is not None:
            working_dir = Path(self.install_dir)
            if not working_dir.is_absolute():
                working_dir = base_dir / working_dir

        return InstallTarget(
            name=self.name,
            kind=TargetKind.RUN,
            privileged=self.privileged,
            install_dir=working_dir,
            source_file=program,
        )


@dataclass(frozen=True)
class TargetCatalog:
    """Ordered, name-unique collection of install targets.

    Order is implicit targets in artifact order, then explicit-only targets
    in metadata order.
    """

    targets: tuple[InstallTarget, ...] = field(default_factory=tuple)

    def __iter__(self) -> Iterator[InstallTarget]:
        return iter(self.targets)

    def __len__(self) -> int:
        return len(self.targets)

    def get(self, name: str) -> InstallTarget | None:
        for target in self.targets:
            if target.name == name:
                return target
        return None

    def names(self) -> list[str]:
        return [t.name for t in self.targets]


def _implicit_builders(artifacts: Sequence[BuildArtifact]) -> dict[str, TargetBuilder]:
    forms: dict[str, set[ArtifactKind]] = {}
    for artifact in artifacts:
        if artifact.kind in _LIBRARY_KINDS:
            forms.setdefault(artifact.name, set()).add(artifact.kind)

    builders: dict[str, TargetBuilder] = {}
    for artifact in artifacts:
        if artifact.kind is ArtifactKind.BINARY:
            builder = TargetBuilder(
                name=artifact.name,
                implicit=True,
                privileged=artifact.privileged,
                mode=BINARY_MODE,
                file_name=executable_name(artifact.name),
                target_file=str(artifact.built_path),
            )
        elif artifact.kind in _LIBRARY_KINDS:
            name = artifact.name
            if len(forms[artifact.name]) > 1:
                name += LIBRARY_SUFFIXES[artifact.kind]
            builder = TargetBuilder(
                name=name,
                implicit=True,
                kind=_LIBRARY_KINDS[artifact.kind],
                privileged=artifact.privileged,
                mode=FILE_MODE,
                library=(artifact.name, artifact.kind),
                target_file=str(artifact.built_path),
            )
        else:
            logger.debug("No install target for %s artifact %s", artifact.kind.value, artifact.name)
            continue

        if builder.name in builders:
            raise CatalogError(builder.name, "duplicate target name")
        builders[builder.name] = builder
    return builders


def build_catalog(
    artifacts: Sequence[BuildArtifact],
    metadata: Mapping[str, Any],
    table: DirectoryTable,
    *,
    base_dir: Path,
    policy: CatalogPolicy | None = None,
    target_filter: str | None = None,
) -> TargetCatalog:
    """Build the full catalog from artifacts and explicit metadata.

    Args:
        artifacts: Build artifacts in discovery order
        metadata: Explicit entries keyed by target name (raw tables or
            TargetOverride instances)
        table: Resolved directories, used for per-kind default install dirs
        base_dir: Directory that relative target-file paths are relative to
        policy: Default-directory policy (defaults to CatalogPolicy())
        target_filter: When set, only this target's source files are checked
            for existence

    Raises:
        CatalogError: Invalid metadata, duplicate names or missing sources
        ConfigurationError: Invalid substitution tokens in target paths
    """
    if policy is None:
        policy = CatalogPolicy()

    builders = _implicit_builders(artifacts)
    for name, override in parse_metadata(metadata).items():
        builder = builders.get(name)
        if builder is None:
            builder = TargetBuilder(name=name)
            builders[name] = builder
        builder.apply(override)

    resolver = PathResolver(table)
    targets = tuple(
        builder.build(
            resolver,
            policy,
            base_dir,
            check_sources=target_filter is None or builder.name == target_filter,
        )
        for builder in builders.values()
    )
    logger.debug("Catalog: %s", [t.name for t in targets])
    return TargetCatalog(targets=targets)
