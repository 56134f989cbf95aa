"""Execution of an install plan.

The engine walks the catalog in order and performs one action per target. It
never raises for a per-target failure: errors are recorded in the Report and a
fatal one stops the walk. Already-installed targets stay in place; there is no
rollback.

All side effects go through ctx.filesystem and ctx.processes, so dry-run mode
follows exactly the same path with no-op capabilities and produces the same
Report.
"""

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from native_install.core.catalog import TargetCatalog
from native_install.core.context import InstallContext
from native_install.core.dirs import DirectoryTable
from native_install.core.errors import CatalogError, ExecutionError
from native_install.core.modes import ModeSpec, current_umask
from native_install.core.options import InstallOptions
from native_install.core.process.abc import SpawnResult
from native_install.core.report import Outcome, Report, ReportEntry
from native_install.core.run_protocol import build_environment, invoke, working_directory
from native_install.core.targets import InstallTarget, TargetKind

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Copy:
    source: Path
    destination: Path
    mode: ModeSpec
    strip: bool = False


@dataclass(frozen=True)
class CopyDirectory:
    source: Path
    destination: Path
    mode: ModeSpec


@dataclass(frozen=True)
class CreateDirectory:
    destination: Path
    mode: ModeSpec


@dataclass(frozen=True)
class Symlink:
    target: str
    link_name: Path


@dataclass(frozen=True)
class RunHook:
    program: Path
    cwd: Path
    env: dict[str, str] = field(default_factory=dict, hash=False, compare=True)


Action = Copy | CopyDirectory | CreateDirectory | RunHook


@dataclass(frozen=True)
class PlannedTarget:
    target: InstallTarget
    action: Action
    links: tuple[Symlink, ...] = ()


@dataclass(frozen=True)
class ExecutionPlan:
    """Ordered actions for every non-excluded target that passes the filter."""

    items: tuple[PlannedTarget, ...]

    def __iter__(self) -> Iterator[PlannedTarget]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    def names(self) -> list[str]:
        return [item.target.name for item in self.items]


def plan_target(
    target: InstallTarget,
    table: DirectoryTable,
    options: InstallOptions,
    *,
    cwd: Path,
    environ: dict[str, str],
) -> PlannedTarget:
    """Resolve one target into its action and alias links."""
    if target.kind is TargetKind.RUN:
        assert target.source_file is not None
        hook = RunHook(
            program=target.source_file,
            cwd=working_directory(target.install_dir, cwd),
            env=build_environment(table, environ, verbose=options.verbose),
        )
        return PlannedTarget(target=target, action=hook)

    assert target.destination is not None and target.mode is not None
    destination = target.destination
    mode = options.mode_override or target.mode

    action: Action
    if target.is_directory and target.source_file is None:
        action = CreateDirectory(destination=destination, mode=mode)
    elif target.is_directory:
        assert target.source_file is not None
        action = CopyDirectory(source=target.source_file, destination=destination, mode=mode)
    else:
        assert target.source_file is not None and target.kind is not None
        action = Copy(
            source=target.source_file,
            destination=destination,
            mode=mode,
            strip=target.kind.is_binary,
        )

    links = tuple(
        Symlink(target=destination.name, link_name=destination.parent / alias)
        for alias in target.aliases
    )
    return PlannedTarget(target=target, action=action, links=links)


def build_plan(
    catalog: TargetCatalog,
    table: DirectoryTable,
    options: InstallOptions,
    *,
    cwd: Path,
    environ: dict[str, str] | None = None,
) -> ExecutionPlan:
    """Turn the catalog into an ExecutionPlan.

    Excluded targets never appear in the plan. With a target filter only the
    named target is planned.

    Raises:
        CatalogError: If the target filter names no target in the catalog
    """
    if options.target_filter is not None and catalog.get(options.target_filter) is None:
        raise CatalogError(options.target_filter, "no such install target")

    items: list[PlannedTarget] = []
    for target in catalog:
        if target.excluded:
            logger.debug("Excluded target %s", target.name)
            continue
        if options.target_filter is not None and target.name != options.target_filter:
            continue
        items.append(plan_target(target, table, options, cwd=cwd, environ=dict(environ or {})))
    return ExecutionPlan(items=tuple(items))


def _entry(item: PlannedTarget, outcome: Outcome, message: str) -> ReportEntry:
    destination: Path | None = None
    if not isinstance(item.action, RunHook):
        destination = item.action.destination
    return ReportEntry(
        name=item.target.name,
        outcome=outcome,
        message=message,
        destination=destination,
    )


class ExecutionEngine:
    """Performs an ExecutionPlan one target at a time."""

    def __init__(self, ctx: InstallContext, table: DirectoryTable, options: InstallOptions) -> None:
        self._ctx = ctx
        self._options = options
        self._umask = options.umask if options.umask is not None else current_umask()
        self._roots = (table["prefix"], table["exec_prefix"])
        self._announced_roots: set[Path] = set()

    def run(self, plan: ExecutionPlan) -> Report:
        report = Report()
        for item in plan:
            entry = self._perform(item)
            report.record(entry)
            self._announce(entry)
            if report.halted:
                logger.debug("Halting after fatal outcome for %s", item.target.name)
                break
        return report

    def _perform(self, item: PlannedTarget) -> ReportEntry:
        target = item.target
        if target.privileged and self._options.privilege_filter.skips():
            return _entry(item, Outcome.SKIPPED, "privileged target not installed")

        action = item.action
        try:
            if isinstance(action, RunHook):
                return self._run_hook(item, action)
            if isinstance(action, Copy):
                entry = self._copy(item, action)
            elif isinstance(action, CopyDirectory):
                entry = self._copy_directory(item, action)
            else:
                entry = self._create_directory(item, action)
            if entry.outcome is Outcome.INSTALLED:
                for link in item.links:
                    self._symlink(link)
            return entry
        except ExecutionError as e:
            return _entry(item, Outcome.FATAL, str(e))
        except OSError as e:
            return _entry(item, Outcome.FATAL, _describe_os_error(e))

    def _announce(self, entry: ReportEntry) -> None:
        feedback = self._ctx.feedback
        if entry.outcome is Outcome.FATAL:
            feedback.error(f"Error: {entry.name}: {entry.message}")
        elif entry.outcome is Outcome.ERROR:
            feedback.warning(f"{entry.name}: {entry.message}")
        elif entry.outcome is Outcome.SKIPPED and self._options.verbose:
            feedback.info(f"-- Skipping {entry.name}: {entry.message}")

    # Filesystem actions

    def _copy(self, item: PlannedTarget, action: Copy) -> ReportEntry:
        fs = self._ctx.filesystem
        if not self._options.force and self._up_to_date(action.source, action.destination):
            return _entry(item, Outcome.SKIPPED, "up to date")

        self._ensure_parent(action.destination)
        self._ctx.feedback.info(f"-- Installing {action.source} to {action.destination}")
        if self._options.install_program is not None:
            args = ["-v"] if self._options.verbose else []
            args += ["-T", str(action.source), str(action.destination)]
            self._spawn_tool(self._options.install_program, args)
        else:
            fs.copy_file(action.source, action.destination)

        if action.strip and self._options.strip_program is not None:
            self._detail(f"Stripping {action.destination}")
            self._spawn_tool(self._options.strip_program, [str(action.destination)])

        executable = bool(item.target.kind and item.target.kind.is_binary)
        self._apply_mode(action.destination, action.mode, fs.mode(action.source), executable)
        return _entry(item, Outcome.INSTALLED, f"installed to {action.destination}")

    def _copy_directory(self, item: PlannedTarget, action: CopyDirectory) -> ReportEntry:
        fs = self._ctx.filesystem
        directories, files = fs.list_tree(action.source)
        pending = [
            f
            for f in files
            if self._options.force
            or not self._up_to_date(action.source / f, action.destination / f)
        ]
        complete = fs.is_dir(action.destination) and all(
            fs.is_dir(action.destination / d) for d in directories
        )
        if not self._options.force and not pending and complete:
            return _entry(item, Outcome.SKIPPED, "up to date")

        self._ensure_parent(action.destination)
        self._ctx.feedback.info(
            f"-- Installing directory {action.source} to {action.destination}"
        )
        fs.make_dirs(action.destination)
        for directory in directories:
            fs.make_dirs(action.destination / directory)

        executable = bool(item.target.kind and item.target.kind.is_binary)
        for relative in pending:
            self._detail(f"Copying {relative}")
            fs.copy_file(action.source / relative, action.destination / relative)
            self._apply_mode(
                action.destination / relative,
                action.mode,
                fs.mode(action.source / relative),
                executable,
            )

        # Deepest first, so a restrictive mode never blocks the remaining chmods
        for directory in reversed(directories):
            self._apply_directory_mode(
                action.destination / directory, action.mode, fs.mode(action.source / directory)
            )
        self._apply_directory_mode(action.destination, action.mode, fs.mode(action.source))
        return _entry(item, Outcome.INSTALLED, f"installed to {action.destination}")

    def _create_directory(self, item: PlannedTarget, action: CreateDirectory) -> ReportEntry:
        fs = self._ctx.filesystem
        if fs.is_dir(action.destination) and not self._options.force:
            return _entry(item, Outcome.SKIPPED, "already exists")

        self._ensure_parent(action.destination)
        self._ctx.feedback.info(f"-- Creating directory {action.destination}")
        fs.make_dirs(action.destination)
        self._apply_directory_mode(action.destination, action.mode, 0o777 & ~self._umask)
        return _entry(item, Outcome.INSTALLED, f"created {action.destination}")

    def _symlink(self, link: Symlink) -> None:
        fs = self._ctx.filesystem
        if fs.exists(link.link_name) and not fs.is_symlink(link.link_name):
            raise ExecutionError(f"Cannot create link {link.link_name}: a file is in the way")
        self._detail(f"Linking {link.link_name} -> {link.target}")
        fs.symlink(link.target, link.link_name)

    def _up_to_date(self, source: Path, destination: Path) -> bool:
        fs = self._ctx.filesystem
        installed = fs.mtime(destination)
        if installed is None:
            return False
        built = fs.mtime(source)
        return built is not None and installed >= built

    def _ensure_parent(self, destination: Path) -> None:
        fs = self._ctx.filesystem
        if self._options.no_create:
            # Read-only, so a dry run reports the same failure
            if not fs.is_dir(destination.parent):
                raise ExecutionError(
                    f"Directory {destination.parent} does not exist and --no-create is set"
                )
            return
        created = fs.make_dirs(destination.parent)
        for directory in created:
            if directory in self._roots and directory not in self._announced_roots:
                self._announced_roots.add(directory)
                self._ctx.feedback.info(f"-- Creating installation prefix {directory}")
        if created:
            self._detail(f"Created {', '.join(str(d) for d in created)}")

    def _apply_mode(self, path: Path, mode: ModeSpec, current: int, executable: bool) -> None:
        bits = mode.apply(current, executable=executable, umask=self._umask)
        self._detail(f"Setting mode {bits:04o} on {path}")
        self._ctx.filesystem.chmod(path, bits)

    def _apply_directory_mode(self, path: Path, mode: ModeSpec, current: int) -> None:
        bits = mode.apply(current, executable=True, umask=self._umask)
        # A directory is searchable wherever it is readable
        bits |= (bits & 0o444) >> 2
        self._detail(f"Setting mode {bits:04o} on {path}")
        self._ctx.filesystem.chmod(path, bits)

    # Processes

    def _run_hook(self, item: PlannedTarget, hook: RunHook) -> ReportEntry:
        self._ctx.feedback.info(f"-- Executing steps for {item.target.name} ({hook.program})")
        result = invoke(self._ctx.processes, hook.program, cwd=hook.cwd, env=hook.env)
        return _entry(item, result.outcome.to_outcome(), result.describe())

    def _spawn_tool(self, program: Path, args: Sequence[str]) -> None:
        try:
            result: SpawnResult = self._ctx.processes.spawn(program, args)
        except OSError as e:
            raise ExecutionError(f"Failed to run {program}: {e.strerror or e}") from e
        if result.signaled:
            raise ExecutionError(f"{program.name} terminated by signal {result.signal}")
        if not result.success:
            raise ExecutionError(f"{program.name} exited with code {result.exit_code}")

    def _detail(self, message: str) -> None:
        if self._options.verbose:
            self._ctx.feedback.info(f"   {message}")


def _describe_os_error(error: OSError) -> str:
    if error.filename is not None:
        return f"{error.strerror or error}: {error.filename}"
    return str(error)


def run_install(
    ctx: InstallContext,
    catalog: TargetCatalog,
    table: DirectoryTable,
    options: InstallOptions,
) -> Report:
    """Plan and perform the catalog.

    Raises:
        CatalogError: If the target filter names an unknown target

    Returns:
        Report with one entry per performed target, in order
    """
    plan = build_plan(catalog, table, options, cwd=ctx.cwd, environ=dict(ctx.environ))
    logger.debug("Plan: %s", plan.names())
    return ExecutionEngine(ctx, table, options).run(plan)
