import tomllib
from pathlib import Path

from native_install.core.dirs import DIRECTORY_NAMES
from native_install.core.errors import ConfigurationError

CONFIG_DIR_NAME = ".native-install"


def find_config(manifest_dir: Path, explicit: Path | None) -> Path | None:
    """Locate config.toml: the explicit path, else `<manifest>/.native-install/config.toml`.

    Raises:
        ConfigurationError: If an explicitly given config file does not exist
    """
    if explicit is not None:
        if not explicit.is_file():
            raise ConfigurationError(f"Config file not found: {explicit}")
        return explicit
    candidate = manifest_dir / CONFIG_DIR_NAME / "config.toml"
    if candidate.is_file():
        return candidate
    return None


def load_dir_config(cfg_path: Path | None) -> dict[str, str]:
    """Load the [dir] table of config.toml; an absent file means no overrides.

    Example config:
      [dir]
      prefix = "/opt/tool"
      libdir = "lib64"
      docdir = "${datarootdir}/doc/tool-1.2"
    """
    if cfg_path is None:
        return {}

    try:
        data = tomllib.loads(cfg_path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid config file {cfg_path}: {e}") from e

    table = data.get("dir", {})
    if not isinstance(table, dict):
        raise ConfigurationError(f"{cfg_path}: [dir] must be a table")

    dirs: dict[str, str] = {}
    for key, value in table.items():
        if key not in DIRECTORY_NAMES:
            raise ConfigurationError(f"{cfg_path}: unknown directory '{key}' in [dir]")
        if not isinstance(value, str):
            raise ConfigurationError(f"{cfg_path}: [dir] {key} must be a string")
        dirs[key] = value
    return dirs
