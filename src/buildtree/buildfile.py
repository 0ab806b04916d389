"""Build file discovery and loading.

A build file is an ordinary Python script that constructs nodes. Every
module-level variable bound to a node (and not starting with an underscore)
becomes a target addressable from the command line by that variable name.
"""

from __future__ import annotations

import runpy
import sys
from pathlib import Path
from typing import Optional

from buildtree.errors import BuildFileError
from buildtree.nodes import Node

BUILD_FILE_NAMES = ["buildfile.py", "bt.py"]
DEFAULT_TARGET = "default"


def find_build_file(start_dir: Optional[Path] = None, names: Optional[list[str]] = None) -> Optional[Path]:
    """Find a build file in the current or parent directories.

    Args:
        start_dir: Directory to start searching from (defaults to cwd)
        names: File names to look for (defaults to BUILD_FILE_NAMES)

    Returns:
        Path to the build file if found, None otherwise
    """
    if start_dir is None:
        start_dir = Path.cwd()
    if names is None:
        names = BUILD_FILE_NAMES

    current = start_dir.resolve()

    while True:
        for filename in names:
            build_path = current / filename
            if build_path.is_file():
                return build_path

        parent = current.parent
        if parent == current:
            break
        current = parent

    return None


def load_build_file(path: Path) -> dict[str, Node]:
    """Execute a build file and collect its targets.

    The build file's directory is put on sys.path while it runs, so it can
    import helper modules that live next to it. Nodes without an explicit
    name are named after the first variable they are bound to.

    Args:
        path: Path to the build file

    Returns:
        Mapping of target names to nodes, in definition order

    Raises:
        BuildFileError: If the file doesn't exist or raises while loading
    """
    if not path.is_file():
        raise BuildFileError(f"Build file not found: {path}")

    build_dir = str(path.resolve().parent)
    sys.path.insert(0, build_dir)
    try:
        namespace = runpy.run_path(str(path), run_name="__buildfile__")
    except Exception as e:
        raise BuildFileError(f"Error loading build file '{path}': {e}") from e
    finally:
        if build_dir in sys.path:
            sys.path.remove(build_dir)

    targets: dict[str, Node] = {}
    for name, value in namespace.items():
        if name.startswith("_") or not isinstance(value, Node):
            continue
        if not value.has_name:
            value.name = name
        targets[name] = value

    return targets


def select_targets(targets: dict[str, Node], names: list[str]) -> list[Node]:
    """Resolve target names to nodes.

    With no names, the target called ``default`` is selected.

    Raises:
        BuildFileError: If a name is unknown, or no names were given and the
            build file has no default target
    """
    if not names:
        if DEFAULT_TARGET not in targets:
            raise BuildFileError(
                f"No targets given and the build file defines no '{DEFAULT_TARGET}' target"
            )
        names = [DEFAULT_TARGET]

    unknown = [name for name in names if name not in targets]
    if unknown:
        raise BuildFileError(f"Target not found: {', '.join(unknown)}")

    return [targets[name] for name in names]
