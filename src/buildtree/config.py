"""
Configuration file parsing for default command-line settings.

Settings are read from up to three files, later ones overriding earlier ones:
machine-level, user-level, then the nearest project-level
``.buildtree-config.yml``. Command-line flags override all of them.
"""

from __future__ import annotations

from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Optional

import platformdirs
import yaml
from rich.markup import escape

from buildtree.errors import ConfigError
from buildtree.logging import Logger, LogLevel, NullLogger, parse_log_level
from buildtree.process_runner import OutputTypes

__all__ = [
    "Config",
    "ConfigError",
    "PROJECT_CONFIG_FILE",
    "get_user_config_path",
    "get_machine_config_path",
    "find_project_config",
    "parse_config_file",
    "load_config",
]

PROJECT_CONFIG_FILE = ".buildtree-config.yml"


@dataclass(frozen=True)
class Config:
    """Effective settings after merging every configuration level."""

    log_level: LogLevel = LogLevel.INFO
    keep_going: bool = False
    build_file: Optional[str] = None
    watch_path: Optional[str] = None
    output: OutputTypes = OutputTypes.ALL


_FIELD_NAMES = {f.name for f in fields(Config)}


def get_machine_config_path() -> Path:
    """
    Get the path to the machine-level (system-wide) configuration file.

    Returns:
        Path to the machine config file (may not exist)
    """
    config_dir = Path(platformdirs.site_config_dir("buildtree"))
    return config_dir / "config.yml"


def get_user_config_path() -> Path:
    """
    Get the path to the user-level configuration file.

    Returns:
        Path to the user config file (may not exist)
    """
    config_dir: Path = Path(platformdirs.user_config_dir("buildtree"))
    return config_dir / "config.yml"


def find_project_config(start_dir: Path, logger: Optional[Logger] = None) -> Optional[Path]:
    """
    Walk up the directory tree from start_dir to find .buildtree-config.yml.

    Directories that cannot be inspected are skipped and reported at DEBUG.

    Args:
        start_dir: Directory to start searching from
        logger: Optional logger for skipped directories

    Returns:
        Path to .buildtree-config.yml if found, None otherwise
    """
    if logger is None:
        logger = NullLogger()

    try:
        current = start_dir.resolve()
    except (OSError, RuntimeError) as e:
        # resolve() raises RuntimeError on symlink loops
        logger.debug(
            f"Cannot resolve {escape(str(start_dir))}, no project config: {escape(str(e))}"
        )
        return None

    while True:
        config_path = current / PROJECT_CONFIG_FILE
        try:
            if config_path.exists():
                return config_path
        except OSError as e:
            logger.debug(f"Skipping {escape(str(current))} in config search: {escape(str(e))}")

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def _require(path: Path, key: str, value: Any, expected: type, description: str) -> None:
    if not isinstance(value, expected):
        raise ConfigError(
            f"Error in config file '{path}': Field '{key}' must be {description}"
        )


def parse_config_file(path: Path) -> dict[str, Any]:
    """
    Parse a buildtree configuration file.

    Only the settings present in the file are returned, so the caller can
    layer several files on top of each other.

    Args:
        path: Path to the configuration file

    Returns:
        Mapping of Config field names to parsed values (empty if the file
        doesn't exist or is empty)

    Raises:
        ConfigError: If the file is unreadable, is malformed YAML, has
            unknown keys or has values of the wrong type

    Example config file:
        ```yaml
        log_level: debug
        keep_going: true
        build_file: tools/build.py
        watch_path: src
        output: err
        ```
    """
    if not path.exists():
        return {}

    try:
        with open(path, "r") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(f"Error reading config file '{path}': {e}") from e

    if not content.strip():
        return {}

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing YAML in config file '{path}': {e}") from e

    if data is None:
        return {}

    if not isinstance(data, dict):
        raise ConfigError(f"Error in config file '{path}': top level must be a dictionary")

    unknown = sorted(str(key) for key in data if key not in _FIELD_NAMES)
    if unknown:
        raise ConfigError(
            f"Error in config file '{path}': Unknown setting(s): {', '.join(unknown)}"
        )

    settings: dict[str, Any] = {}

    if "log_level" in data:
        _require(path, "log_level", data["log_level"], str, "a string")
        try:
            settings["log_level"] = parse_log_level(data["log_level"])
        except ValueError as e:
            raise ConfigError(f"Error in config file '{path}': {e}") from e

    if "keep_going" in data:
        _require(path, "keep_going", data["keep_going"], bool, "a boolean")
        settings["keep_going"] = data["keep_going"]

    for key in ("build_file", "watch_path"):
        if key in data:
            _require(path, key, data[key], str, "a string")
            settings[key] = data[key]

    if "output" in data:
        _require(path, "output", data["output"], str, "a string")
        try:
            settings["output"] = OutputTypes(data["output"].lower())
        except ValueError as e:
            valid = ", ".join(t.value for t in OutputTypes)
            raise ConfigError(
                f"Error in config file '{path}': Field 'output' must be one of: {valid}"
            ) from e

    return settings


def load_config(start_dir: Optional[Path] = None, logger: Optional[Logger] = None) -> Config:
    """
    Merge machine, user and project configuration into one Config.

    Args:
        start_dir: Directory to start the project config search from
            (defaults to cwd)
        logger: Optional logger for config search diagnostics

    Returns:
        The effective Config

    Raises:
        ConfigError: If any of the files is invalid
    """
    if start_dir is None:
        start_dir = Path.cwd()

    paths = [get_machine_config_path(), get_user_config_path()]
    project_config = find_project_config(start_dir, logger)
    if project_config is not None:
        paths.append(project_config)

    config = Config()
    for path in paths:
        config = replace(config, **parse_config_file(path))
    return config
