"""Explicit per-target metadata from the project manifest.

Entries are sparse: only the keys written in the manifest override the
defaults computed for an implicit target. Keys use the manifest's kebab-case
spelling (`target-file`, `installed-path`, ...).
"""

from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from native_install.core.errors import CatalogError
from native_install.core.modes import ModeSpec
from native_install.core.targets import TargetKind


def _kebab(name: str) -> str:
    return name.replace("_", "-")


class TargetOverride(BaseModel):
    """One `[package.metadata.install-targets.<name>]` entry."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        populate_by_name=True,
        alias_generator=_kebab,
    )

    type: TargetKind | None = None
    privileged: bool = False
    directory: bool = False
    install_dir: str | None = None
    mode: str | None = None
    installed_path: str | None = None
    target_file: str | None = None
    installed_aliases: tuple[str, ...] = ()
    exclude: bool = False
    # File-name prefix of library targets, replacing the platform `lib`
    prefix: str | None = None

    @field_validator("mode")
    @classmethod
    def validate_mode(cls, v: str | None) -> str | None:
        """Reject modes that are not valid chmod expressions."""
        if v is not None:
            ModeSpec.parse(v)
        return v

    def is_set(self, field: str) -> bool:
        """Return True if the manifest entry spelled out this field."""
        return field in self.model_fields_set


def parse_metadata(raw: Mapping[str, Any]) -> dict[str, TargetOverride]:
    """Validate raw manifest metadata into TargetOverride entries.

    Declaration order is preserved. An entry with `exclude = true` is reduced
    to just that flag.

    Raises:
        CatalogError: If an entry is not a table or has invalid fields
    """
    overrides: dict[str, TargetOverride] = {}
    for name, entry in raw.items():
        if isinstance(entry, TargetOverride):
            overrides[name] = entry
            continue
        if not isinstance(entry, Mapping):
            raise CatalogError(name, "metadata entry must be a table")
        if entry.get("exclude") is True:
            # Sibling fields of an excluded entry are never read, so never validated.
            overrides[name] = TargetOverride(exclude=True)
            continue
        try:
            overrides[name] = TargetOverride.model_validate(dict(entry))
        except ValidationError as e:
            problems = "; ".join(
                f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
            )
            raise CatalogError(name, f"invalid metadata ({problems})") from e
    return overrides
