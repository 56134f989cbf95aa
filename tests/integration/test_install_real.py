"""End-to-end installs of an on-disk project with real processes."""

import os
import shutil
import sys
from pathlib import Path

import pytest

from native_install.core.catalog import build_catalog
from native_install.core.context import InstallContext
from native_install.core.dirs import resolve_directories
from native_install.core.engine import run_install
from native_install.core.manifest import load_manifest
from native_install.core.options import InstallOptions
from native_install.core.process.real import RealProcessRunner
from native_install.core.report import ExitStatus, Outcome
from tests.fakes.project import snapshot, write_file, write_project

pytestmark = pytest.mark.skipif(sys.platform != "linux", reason="uses GNU install and .so names")

_METADATA = """
[package.metadata.install-targets.toolctl]
installed-aliases = ["tctl"]

[package.metadata.install-targets.manual]
type = "man"
target-file = "docs/tool.1"
installed-path = "man1/tool.1"

[package.metadata.install-targets.examples]
type = "data"
directory = true
target-file = "examples"
install-dir = "<datadir>/tool"
"""


def _install(root: Path, prefix: Path, **kwargs):
    manifest = load_manifest(root)
    table = resolve_directories(
        cli_flags={"prefix": str(prefix)},
        env_vars={},
        config_dirs={},
        package_name=manifest.package_name,
    )
    catalog = build_catalog(manifest.artifacts, manifest.metadata, table, base_dir=root)
    ctx = InstallContext.for_test(
        processes=RealProcessRunner(), cwd=root, dry_run=kwargs.get("dry_run", False)
    )
    kwargs.setdefault("umask", 0o022)
    return run_install(ctx, catalog, table, InstallOptions(**kwargs))


@pytest.fixture
def project(tmp_path: Path) -> Path:
    root = write_project(
        tmp_path / "tool",
        binaries=("tool", "toolctl"),
        lib_crate_types=("staticlib", "cdylib"),
        manifest_extra=_METADATA,
    )
    write_file(root / "docs" / "tool.1", ".TH TOOL 1\n")
    write_file(root / "examples" / "basic.conf", "x = 1\n")
    write_file(root / "examples" / "nested" / "more.conf", "y = 2\n")
    return root


def test_full_install_layout(project: Path, tmp_path: Path) -> None:
    prefix = tmp_path / "prefix"

    report = _install(project, prefix)

    assert report.status is ExitStatus.SUCCESS
    assert [e.name for e in report.entries] == [
        "tool",
        "toolctl",
        "tool-staticlib",
        "tool-cdylib",
        "manual",
        "examples",
    ]
    assert all(e.outcome is Outcome.INSTALLED for e in report.entries)
    assert (prefix / "bin" / "tool").stat().st_mode & 0o777 == 0o755
    assert os.readlink(prefix / "bin" / "tctl") == "toolctl"
    assert (prefix / "lib" / "libtool.a").stat().st_mode & 0o777 == 0o644
    assert (prefix / "lib" / "libtool.so").exists()
    assert (prefix / "share" / "man" / "man1" / "tool.1").exists()
    assert (prefix / "share" / "tool" / "examples" / "nested" / "more.conf").exists()


def test_reinstall_changes_nothing(project: Path, tmp_path: Path) -> None:
    prefix = tmp_path / "prefix"
    _install(project, prefix)
    before = snapshot(prefix)

    report = _install(project, prefix)

    assert snapshot(prefix) == before
    assert report.status is ExitStatus.SUCCESS
    assert all(e.outcome is Outcome.SKIPPED for e in report.entries)


def test_dry_run_touches_nothing(project: Path, tmp_path: Path) -> None:
    prefix = tmp_path / "prefix"

    report = _install(project, prefix, dry_run=True)

    assert not prefix.exists()
    assert report.status is ExitStatus.SUCCESS


@pytest.mark.skipif(shutil.which("install") is None, reason="install program not available")
def test_install_program(project: Path, tmp_path: Path) -> None:
    prefix = tmp_path / "prefix"

    report = _install(project, prefix, install_program=Path(shutil.which("install") or "install"))

    assert report.status is ExitStatus.SUCCESS
    assert (prefix / "bin" / "tool").read_text(encoding="utf-8") == "#!/bin/sh\necho binary\n"
    assert (prefix / "bin" / "tool").stat().st_mode & 0o777 == 0o755
