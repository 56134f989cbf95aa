import logging
import os
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeVar

import click

from native_install.cli.config import find_config, load_dir_config
from native_install.cli.ensure import Ensure
from native_install.cli.rendering import render_report
from native_install.core.build import run_build
from native_install.core.catalog import CatalogPolicy, build_catalog
from native_install.core.context import InstallContext, create_context
from native_install.core.dirs import DIRECTORY_NAMES, host_arch_triple, resolve_directories
from native_install.core.engine import run_install
from native_install.core.errors import CatalogError, ConfigurationError, ExecutionError
from native_install.core.manifest import load_manifest
from native_install.core.modes import ModeSpec
from native_install.core.options import InstallOptions, PrivilegeFilter
from native_install.core.report import ExitStatus

logger = logging.getLogger(__name__)

# Enable debug logging if NATIVE_INSTALL_DEBUG environment variable is set
if os.getenv("NATIVE_INSTALL_DEBUG"):
    logging.basicConfig(level=logging.DEBUG, format="[DEBUG %(name)s:%(lineno)d] %(message)s")

CONTEXT_SETTINGS = dict(help_option_names=["-h", "--help"])  # terse help flags

_DIRECTORY_HELP: dict[str, str] = {
    "prefix": "Installation prefix (default /usr/local, or ~/.local with --user-prefix).",
    "exec_prefix": "Prefix for architecture-dependent files (default: prefix).",
    "bindir": "Programs, relative to exec_prefix (default bin).",
    "sbindir": "System administrator programs, relative to exec_prefix (default sbin).",
    "libdir": "Libraries, relative to exec_prefix (default lib).",
    "libexecdir": "Programs not run from the shell, relative to exec_prefix (default lib).",
    "includedir": "Header files, relative to prefix (default include).",
    "datarootdir": "Root of platform-independent data, relative to prefix (default share).",
    "datadir": "Platform-independent data, relative to datarootdir.",
    "mandir": "Manual pages, relative to datarootdir (default man).",
    "infodir": "Info pages, relative to datarootdir (default info).",
    "docdir": "Documentation, relative to datarootdir (default doc/<package>).",
    "localedir": "Locale data, relative to datarootdir (default locale).",
    "sysconfdir": "System configuration, relative to prefix (default etc).",
    "localstatedir": "Local system state, relative to prefix (default var).",
    "sharedstatedir": "Shared system state, relative to prefix (default com).",
}


F = TypeVar("F")


def directory_options(f: F) -> F:
    """Add one --<dir> option per installation directory."""
    for name in reversed(DIRECTORY_NAMES):
        flag = "--" + name.replace("_", "-")
        f = click.option(flag, name, default=None, metavar="DIR", help=_DIRECTORY_HELP[name])(f)
    return f


@dataclass(frozen=True)
class InstallRequest:
    """Validated command-line choices, before anything is resolved."""

    directories: dict[str, str | None] = field(default_factory=dict)
    manifest_dir: Path | None = None
    config_path: Path | None = None
    out_dir: Path | None = None
    release: bool = True
    build: bool = False
    build_only: bool = False
    user_prefix: bool = False
    arch: str | None = None
    no_libexec: bool = False
    no_sbin: bool = False
    shared_as_library: bool = True
    quiet: bool = False
    options: InstallOptions = field(default_factory=InstallOptions)


def resolve_program(explicit: str | None, default: str, *, disabled: bool) -> Path | None:
    """Find an external program.

    A missing default program means the step is skipped (or done natively).

    Raises:
        ConfigurationError: If an explicitly named program cannot be found
    """
    if disabled:
        return None
    if explicit is not None:
        found = shutil.which(explicit)
        if found is None:
            raise ConfigurationError(f"Program not found: {explicit}")
        return Path(found)
    found = shutil.which(default)
    return Path(found) if found else None


def privilege_filter(privileged: bool | None, user_prefix: bool) -> PrivilegeFilter:
    if privileged is True:
        return PrivilegeFilter.FORCE_INCLUDE
    if privileged is False:
        return PrivilegeFilter.EXCLUDE
    if user_prefix:
        return PrivilegeFilter.EXCLUDE_USER_PREFIX
    return PrivilegeFilter.ALLOW


def parse_mode_option(mode: str | None) -> ModeSpec | None:
    if mode is None:
        return None
    try:
        return ModeSpec.parse(mode)
    except ValueError as e:
        raise ConfigurationError(f"Invalid --mode '{mode}': {e}") from e


def install(ctx: InstallContext, request: InstallRequest) -> ExitStatus:
    """Resolve everything, optionally build, then install.

    Raises:
        ConfigurationError: Bad directories, config file or manifest
        CatalogError: Bad target metadata or missing sources
        ExecutionError: The nested build failed
    """
    manifest_dir = request.manifest_dir or ctx.cwd
    if not manifest_dir.is_absolute():
        manifest_dir = ctx.cwd / manifest_dir

    config_path = request.config_path
    if config_path is not None and not config_path.is_absolute():
        config_path = ctx.cwd / config_path

    config_dirs = load_dir_config(find_config(manifest_dir, config_path))
    manifest = load_manifest(manifest_dir, out_dir=request.out_dir, release=request.release)
    table = resolve_directories(
        cli_flags=request.directories,
        env_vars=ctx.environ,
        config_dirs=config_dirs,
        package_name=manifest.package_name,
        user_prefix=request.user_prefix,
        arch=request.arch,
    )

    if request.build:
        run_build(
            ctx,
            manifest_dir,
            table,
            release=request.release,
            out_dir=request.out_dir,
            verbose=request.options.verbose,
        )
        if request.build_only:
            return ExitStatus.SUCCESS

    policy = CatalogPolicy(
        no_libexec=request.no_libexec,
        no_sbin=request.no_sbin,
        shared_as_library=request.shared_as_library,
    )
    catalog = build_catalog(
        manifest.artifacts,
        manifest.metadata,
        table,
        base_dir=manifest_dir,
        policy=policy,
        target_filter=request.options.target_filter,
    )

    report = run_install(ctx, catalog, table, request.options)
    if not (request.quiet and report.status is ExitStatus.SUCCESS):
        render_report(report, dry_run=request.options.dry_run)
    return report.status


@click.command("native-install", context_settings=CONTEXT_SETTINGS)
@click.version_option(package_name="native-install")
@directory_options
@click.option("--user-prefix", is_flag=True, help="Default the prefix to ~/.local.")
@click.option(
    "--manifest-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Directory containing Cargo.toml (default: current directory).",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="config.toml with a [dir] table (default: <manifest-dir>/.native-install/config.toml).",
)
@click.option(
    "--out-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Build output directory (default: <manifest-dir>/target).",
)
@click.option(
    "--debug/--release",
    "debug",
    default=False,
    help="Install debug build outputs instead of release ones.",
)
@click.option("--build", is_flag=True, help="Build the project before installing.")
@click.option("--build-only", is_flag=True, help="Build the project without installing.")
@click.option("--dry-run", is_flag=True, help="Show what would be done without doing it.")
@click.option("--force", is_flag=True, help="Install even when the installed file is up to date.")
@click.option("-v", "--verbose", is_flag=True, help="Print a message for each step.")
@click.option("-q", "--quiet", is_flag=True, help="Only print warnings and errors.")
@click.option("--no-create", is_flag=True, help="Do not create missing directories.")
@click.option(
    "--internal-install",
    is_flag=True,
    help="Copy files natively instead of running the install program.",
)
@click.option("--install", "install_program", metavar="PRG", default=None, help="Install program.")
@click.option("--strip", "strip_program", metavar="PRG", default=None, help="Strip program.")
@click.option("--no-strip", "--without-strip", "no_strip", is_flag=True, help="Do not strip.")
@click.option("--mode", metavar="MODE", default=None, help="chmod mode applied to every file.")
@click.option("--target", metavar="NAME", default=None, help="Install only this target.")
@click.option("--no-libexec", is_flag=True, help="Install libexec targets to bindir.")
@click.option("--no-sbin", is_flag=True, help="Install privileged binaries to bindir.")
@click.option(
    "--arch-prefix",
    is_flag=False,
    flag_value=host_arch_triple(),
    default=None,
    metavar="[TRIPLE]",
    help="Install bin, lib, include, libexec and sbin targets under an architecture directory.",
)
@click.option(
    "--shared",
    type=click.Choice(["lib", "bin"]),
    default=None,
    help="Install shared libraries to libdir (lib) or bindir (bin).",
)
@click.option(
    "--privileged/--no-privileged",
    default=None,
    help="Force or forbid installing privileged targets.",
)
@click.pass_context
def cli(
    click_ctx: click.Context,
    user_prefix: bool,
    manifest_dir: Path | None,
    config_path: Path | None,
    out_dir: Path | None,
    debug: bool,
    build: bool,
    build_only: bool,
    dry_run: bool,
    force: bool,
    verbose: bool,
    quiet: bool,
    no_create: bool,
    internal_install: bool,
    install_program: str | None,
    strip_program: str | None,
    no_strip: bool,
    mode: str | None,
    target: str | None,
    no_libexec: bool,
    no_sbin: bool,
    arch_prefix: str | None,
    shared: str | None,
    privileged: bool | None,
    **directories: str | None,
) -> None:
    """Install a cargo project into native system directories.

    Works like `make install`: programs go to bindir, libraries to libdir,
    and so on, following the GNU directory conventions.
    """
    # Only create context if not already provided (e.g., by tests)
    if click_ctx.obj is None:
        click_ctx.obj = create_context(dry_run=dry_run, quiet=quiet)
    ctx: InstallContext = click_ctx.obj

    if shared is None:
        shared = "bin" if sys.platform == "win32" else "lib"

    try:
        options = InstallOptions(
            dry_run=dry_run or ctx.dry_run,
            verbose=verbose,
            force=force,
            no_create=no_create,
            mode_override=parse_mode_option(mode),
            strip_program=resolve_program(strip_program, "strip", disabled=no_strip),
            install_program=resolve_program(install_program, "install", disabled=internal_install),
            target_filter=target,
            privilege_filter=privilege_filter(privileged, user_prefix),
        )
        request = InstallRequest(
            directories=directories,
            manifest_dir=manifest_dir,
            config_path=config_path,
            out_dir=out_dir,
            release=not debug,
            build=build or build_only,
            build_only=build_only,
            user_prefix=user_prefix,
            arch=arch_prefix,
            no_libexec=no_libexec,
            no_sbin=no_sbin,
            shared_as_library=shared == "lib",
            quiet=quiet,
            options=options,
        )
        status = install(ctx, request)
    except (ConfigurationError, CatalogError, ExecutionError) as e:
        logger.debug("Aborting before install", exc_info=True)
        Ensure.no_error(e)

    if status is not ExitStatus.SUCCESS:
        raise SystemExit(int(status))


def main() -> None:
    """CLI entry point used by the `native-install` console script."""
    cli()
