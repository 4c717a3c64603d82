"""
Layered defaults for taskgraph runs.

Settings come from up to three YAML files, applied in order so that later
ones override earlier ones key by key:

1. machine: ``<site config dir>/taskgraph/config.yml``
2. user: ``<user config dir>/taskgraph/config.yml``
3. project: the nearest ``.taskgraph-config.yml`` at or above the working directory

Command-line flags override all of them. Example project file:

    taskfile: https://example.com/Taskfile.yml
    start: build
    offline: false
    cache_expiry: 3600
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Optional

import platformdirs
import yaml

APP_NAME = "taskgraph"

DEFAULT_TASKFILE = "https://raw.githubusercontent.com/gkwa/ringgem/refs/heads/master/Taskfile.yaml"

PROJECT_CONFIG_NAME = ".taskgraph-config.yml"


class ConfigError(Exception):
    """A config file can't be read or holds keys/values taskgraph doesn't accept."""


@dataclass(frozen=True)
class Settings:
    """Effective defaults for a run, before command-line overrides."""

    taskfile: str = DEFAULT_TASKFILE
    start: str = "default"
    insecure: bool = False
    offline: bool = False
    timeout: float = 30.0
    cache_expiry: float = 24 * 60 * 60.0
    temp_dir: Optional[str] = None


_NUMBER = (int, float)

# Accepted value types per key, one key per Settings field
_FIELD_TYPES: dict[str, tuple[type, ...]] = {
    "taskfile": (str,),
    "start": (str,),
    "insecure": (bool,),
    "offline": (bool,),
    "timeout": _NUMBER,
    "cache_expiry": _NUMBER,
    "temp_dir": (str,),
}


def get_machine_config_path() -> Path:
    """System-wide config file location (may not exist)."""
    return Path(platformdirs.site_config_dir(APP_NAME)) / "config.yml"


def get_user_config_path() -> Path:
    """Per-user config file location, as chosen by platformdirs (may not exist)."""
    return Path(platformdirs.user_config_dir(APP_NAME)) / "config.yml"


def find_project_config(start_dir: Path) -> Optional[Path]:
    """Return the nearest .taskgraph-config.yml in start_dir or its ancestors."""
    start = start_dir.resolve()
    for directory in (start, *start.parents):
        candidate = directory / PROJECT_CONFIG_NAME
        if candidate.is_file():
            return candidate
    return None


def _check_value(path: Path, key: str, value: Any) -> None:
    expected = _FIELD_TYPES[key]
    # YAML booleans are ints to isinstance(); only bool fields take them
    is_bool = isinstance(value, bool)
    if isinstance(value, expected) and (not is_bool or bool in expected):
        return
    type_name = "number" if expected is _NUMBER else expected[0].__name__
    raise ConfigError(f"Error in config file '{path}': Field '{key}' must be a {type_name}")


def parse_config_file(path: Path) -> dict[str, Any]:
    """
    Read one config file into a mapping of Settings overrides.

    A missing or empty file contributes no overrides.

    Raises:
        ConfigError: If the file is unreadable, isn't a YAML mapping, names an
            unknown key, or gives a key a value of the wrong type
    """
    if not path.exists():
        return {}

    try:
        data = yaml.safe_load(path.read_text())
    except OSError as e:
        raise ConfigError(f"Error reading config file '{path}': {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML in config file '{path}': {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Error in config file '{path}': top level must be a mapping")

    unknown = sorted(str(key) for key in data if key not in _FIELD_TYPES)
    if unknown:
        raise ConfigError(f"Error in config file '{path}': unknown key(s): {', '.join(unknown)}")

    for key, value in data.items():
        _check_value(path, key, value)
    return data


def load_settings(start_dir: Optional[Path] = None) -> Settings:
    """
    Apply the machine, user and project config files over the built-in defaults.

    Args:
        start_dir: Where the project config search begins (defaults to cwd)

    Raises:
        ConfigError: If any of the files is invalid
    """
    paths = [get_machine_config_path(), get_user_config_path()]
    project_config = find_project_config(start_dir or Path.cwd())
    if project_config is not None:
        paths.append(project_config)

    settings = Settings()
    for path in paths:
        settings = replace(settings, **parse_config_file(path))
    return settings
