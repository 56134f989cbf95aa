"""Substitution of symbolic directory tokens inside destination paths.

Three marker syntaxes are accepted and may appear anywhere in a template:

    <bindir>/tool
    @libdir@/pkgconfig
    ${datadir}/app

Each marker must name a directory exactly (case-sensitive). A marker naming
anything else is an error, and so is a leading path component that looks like
a directory token (any identifier ending in "dir") written without a marker.
"""

import re
from collections.abc import Collection, Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from native_install.core.errors import ConfigurationError, ReservedTokenError, UnknownTokenError

if TYPE_CHECKING:
    from native_install.core.dirs import DirectoryTable

_IDENT = r"[A-Za-z_][A-Za-z0-9_]*"
_MARKER = re.compile(rf"<(?P<angle>{_IDENT})>|@(?P<at>{_IDENT})@|\$\{{(?P<brace>{_IDENT})\}}")
_RESERVED = re.compile(rf"{_IDENT}dir", re.IGNORECASE)


def _marker_name(match: re.Match[str]) -> str:
    return match.group("angle") or match.group("at") or match.group("brace")


def is_reserved_identifier(text: str) -> bool:
    """Return True when text is an identifier ending in "dir" (any case)."""
    return _RESERVED.fullmatch(text) is not None


def referenced_names(template: str) -> list[str]:
    """Return the identifiers enclosed in markers, in order of appearance."""
    return [_marker_name(m) for m in _MARKER.finditer(template)]


def _check_leading_component(template: str) -> None:
    head = re.split(r"[/\\]", template, maxsplit=1)[0]
    if is_reserved_identifier(head):
        raise ReservedTokenError(head, template)


def substitute(
    template: str,
    values: Mapping[str, str],
    known: Collection[str] = (),
    *,
    check_bare: bool = True,
) -> str:
    """Replace every marker in template with its value.

    Args:
        template: Text possibly containing markers
        values: Substitution values keyed by directory name
        known: Additional names that count as directories even when no value
            is available (only used to pick the error type)
        check_bare: Reject a leading path component written as a bare
            `*dir` identifier, where a marker was expected

    Returns:
        The template with all markers replaced

    Raises:
        ReservedTokenError: A `*dir` identifier that is not a known directory
            inside a marker, or a bare leading `*dir` component
        UnknownTokenError: Any other marker that is not a known directory
    """
    if check_bare:
        _check_leading_component(template)

    pieces: list[str] = []
    position = 0
    for match in _MARKER.finditer(template):
        pieces.append(template[position : match.start()])

        name = _marker_name(match)
        if name in values:
            pieces.append(values[name])
        elif is_reserved_identifier(name) and name not in known:
            raise ReservedTokenError(name, template)
        else:
            raise UnknownTokenError(name, template)
        position = match.end()

    pieces.append(template[position:])
    return "".join(pieces)


@dataclass(frozen=True)
class PathResolver:
    """Expands path templates against a resolved directory table."""

    table: "DirectoryTable"

    def expand(
        self,
        template: str | Path,
        base_dir: Path | None = None,
        *,
        check_bare: bool = True,
    ) -> Path:
        """Expand template into an absolute path.

        A template that is already absolute and contains no markers is
        returned unchanged. A result that is still relative after
        substitution is joined onto base_dir. Pass check_bare=False for
        computed paths (such as a file named after a build artifact), which
        may legitimately start with a `*dir` name.

        Raises:
            TokenError: If a marker or bare component is invalid
            ConfigurationError: If the result is relative and base_dir is
                missing or itself relative
        """
        text = str(template)
        expanded = Path(substitute(text, self.table.as_mapping(), check_bare=check_bare))
        if expanded.is_absolute():
            return expanded

        if base_dir is None:
            raise ConfigurationError(f"Relative path '{text}' has no base directory")
        if not base_dir.is_absolute():
            raise ConfigurationError(f"Base directory '{base_dir}' for '{text}' is not absolute")
        return base_dir / expanded
