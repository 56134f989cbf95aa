"""Resolution of the installation directory namespace.

Every directory is resolved to an absolute path before any target is planned.
Per directory, the first available value wins:

    CLI flag > environment variable > config.toml [dir] entry > derived default

Relative values are joined onto the directory's parent (bindir onto
exec_prefix, mandir onto datarootdir, ...), never onto the working directory.
Values may reference other directories with the usual markers
(`libdir = "${exec_prefix}/lib64"`), so resolution walks a dependency graph
bottom-up and rejects cycles.
"""

import logging
import platform
import sysconfig
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from native_install.core.errors import ConfigurationError, CyclicDirectoryError
from native_install.core.tokens import referenced_names, substitute

logger = logging.getLogger(__name__)

DIRECTORY_NAMES: tuple[str, ...] = (
    "prefix",
    "exec_prefix",
    "bindir",
    "sbindir",
    "libdir",
    "libexecdir",
    "includedir",
    "datarootdir",
    "datadir",
    "mandir",
    "infodir",
    "docdir",
    "localedir",
    "sysconfdir",
    "localstatedir",
    "sharedstatedir",
)

SYSTEM_PREFIX = Path("/usr/local")

# name -> (parent directory, default relative to the parent)
_DEFAULTS: dict[str, tuple[str, str]] = {
    "exec_prefix": ("prefix", ""),
    "bindir": ("exec_prefix", "bin"),
    "sbindir": ("exec_prefix", "sbin"),
    "libdir": ("exec_prefix", "lib"),
    "libexecdir": ("exec_prefix", "lib"),
    "includedir": ("prefix", "include"),
    "datarootdir": ("prefix", "share"),
    "datadir": ("datarootdir", ""),
    "mandir": ("datarootdir", "man"),
    "infodir": ("datarootdir", "info"),
    "docdir": ("datarootdir", "doc/{package}"),
    "localedir": ("datarootdir", "locale"),
    "sysconfdir": ("prefix", "etc"),
    "localstatedir": ("prefix", "var"),
    "sharedstatedir": ("prefix", "com"),
}

ARCH_QUALIFIED = frozenset({"bindir", "libdir", "includedir", "libexecdir", "sbindir"})


class DirectorySource(Enum):
    """Where a resolved directory value came from."""

    CLI = "cli"
    ENV_VAR = "env"
    CONFIG_FILE = "config"
    DERIVED = "derived"


@dataclass(frozen=True)
class ResolvedDirectory:
    path: Path
    source: DirectorySource


@dataclass(frozen=True)
class DirectoryTable:
    """Immutable mapping of every directory name to its absolute path.

    Iteration yields names in the canonical DIRECTORY_NAMES order.
    """

    entries: Mapping[str, ResolvedDirectory]

    def __getitem__(self, name: str) -> Path:
        return self.entries[name].path

    def __contains__(self, name: object) -> bool:
        return name in self.entries

    def __iter__(self) -> Iterator[str]:
        return iter(DIRECTORY_NAMES)

    def source(self, name: str) -> DirectorySource:
        return self.entries[name].source

    def as_mapping(self) -> dict[str, str]:
        """Return name -> absolute path string, in canonical order."""
        return {name: str(self.entries[name].path) for name in DIRECTORY_NAMES}

    def environment(self) -> dict[str, str]:
        """Return the directory-variable environment block.

        One variable per directory, named after the directory identifier.
        This block is handed to run targets and to nested build invocations.
        """
        return self.as_mapping()


def host_arch_triple() -> str:
    """Best-effort architecture-qualified directory segment for this host."""
    multiarch = sysconfig.get_config_var("MULTIARCH")
    if multiarch:
        return str(multiarch)
    return f"{platform.machine().lower()}-{platform.system().lower()}"


def default_sysconfdir(prefix: Path) -> Path:
    """Compute the default sysconfdir for a prefix.

    `/usr` maps to `/etc` and `/opt/<pkg>` maps to `/etc/opt/<pkg>`. Only an
    exact `/usr` prefix is special; `/usr/local` and other nested prefixes use
    `<prefix>/etc`.
    """
    if prefix == Path("/usr"):
        return Path("/etc")
    parts = prefix.parts
    if len(parts) > 2 and parts[0] == "/" and parts[1] == "opt":
        return Path("/etc/opt", *parts[2:])
    return prefix / "etc"


def _first_value(
    name: str,
    cli_flags: Mapping[str, str | None],
    env_vars: Mapping[str, str],
    config_dirs: Mapping[str, str],
) -> tuple[str, DirectorySource] | None:
    cli_value = cli_flags.get(name)
    if cli_value:
        return cli_value, DirectorySource.CLI
    env_value = env_vars.get(name)
    if env_value:
        return env_value, DirectorySource.ENV_VAR
    config_value = config_dirs.get(name)
    if config_value:
        return config_value, DirectorySource.CONFIG_FILE
    return None


def resolve_directories(
    *,
    cli_flags: Mapping[str, str | None],
    env_vars: Mapping[str, str],
    config_dirs: Mapping[str, str],
    package_name: str,
    user_prefix: bool = False,
    arch: str | None = None,
    home: Path | None = None,
) -> DirectoryTable:
    """Resolve all directories into an immutable DirectoryTable.

    Args:
        cli_flags: Directory values given on the command line (None = unset)
        env_vars: Process environment; only directory names are consulted
        config_dirs: The `[dir]` table of config.toml
        package_name: Used for the default docdir (`<datarootdir>/doc/<name>`)
        user_prefix: Default the prefix to `~/.local` instead of `/usr/local`
        arch: Architecture segment inserted under the parent of bin, lib,
            include, libexec and sbin directories, or None
        home: Home directory for `--user-prefix` (defaults to Path.home())

    Raises:
        ConfigurationError: Unknown config keys, a relative prefix, an
            unresolvable token, or a cyclic reference between directories
    """
    for key in [*cli_flags, *config_dirs]:
        if key not in DIRECTORY_NAMES:
            raise ConfigurationError(f"Unknown directory '{key}'")

    raw: dict[str, tuple[str, DirectorySource] | None] = {
        name: _first_value(name, cli_flags, env_vars, config_dirs) for name in DIRECTORY_NAMES
    }
    if raw["prefix"] is None:
        if user_prefix:
            base_home = home if home is not None else Path.home()
            raw["prefix"] = (str(base_home / ".local"), DirectorySource.DERIVED)
        else:
            raw["prefix"] = (str(SYSTEM_PREFIX), DirectorySource.DERIVED)

    resolved: dict[str, ResolvedDirectory] = {}
    stack: list[str] = []

    def resolve(name: str) -> ResolvedDirectory:
        if name in resolved:
            return resolved[name]
        if name in stack:
            raise CyclicDirectoryError(stack[stack.index(name) :] + [name])
        stack.append(name)

        value = raw[name]
        if value is None:
            parent, default = _DEFAULTS[name]
            if name == "sysconfdir":
                path = default_sysconfdir(resolve("prefix").path)
            else:
                text = default.format(package=package_name)
                path = _join_parent(name, parent, Path(text), resolve, arch)
            source = DirectorySource.DERIVED
        else:
            text, source = value
            for reference in referenced_names(text):
                if reference in DIRECTORY_NAMES:
                    resolve(reference)
            values = {n: str(entry.path) for n, entry in resolved.items()}
            path = Path(substitute(text, values, DIRECTORY_NAMES, check_bare=False))
            if not path.is_absolute():
                if name == "prefix":
                    raise ConfigurationError(f"prefix must be an absolute path, got '{text}'")
                parent, _ = _DEFAULTS[name]
                path = _join_parent(name, parent, path, resolve, arch)

        stack.pop()
        entry = ResolvedDirectory(path=path, source=source)
        resolved[name] = entry
        logger.debug("Resolved %s=%s (%s)", name, path, source.value)
        return entry

    for name in DIRECTORY_NAMES:
        resolve(name)

    return DirectoryTable(entries={name: resolved[name] for name in DIRECTORY_NAMES})


def _join_parent(
    name: str,
    parent: str,
    relative: Path,
    resolve: Callable[[str], ResolvedDirectory],
    arch: str | None,
) -> Path:
    base = resolve(parent).path
    if arch is not None and name in ARCH_QUALIFIED:
        base = base / arch
    return base / relative
