"""CLI command implementations and shared utilities."""

from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.markup import escape

from buildtree.buildfile import BUILD_FILE_NAMES, find_build_file, load_build_file
from buildtree.errors import BuildFileError
from buildtree.logging import Logger
from buildtree.nodes import Node


def _supports_unicode() -> bool:
    """
    Check if the terminal supports Unicode characters.

    Returns:
    True if terminal supports UTF-8, False otherwise
    """
    # Classic Windows console (conhost)
    if os.name == "nt" and "WT_SESSION" not in os.environ:
        return False

    encoding = sys.stdout.encoding
    if not encoding:
        return False

    try:
        "✓✗".encode(encoding)
        return True
    except UnicodeEncodeError:
        return False


def get_action_success_string() -> str:
    return "✓" if _supports_unicode() else "[ OK ]"


def get_action_failure_string() -> str:
    return "✗" if _supports_unicode() else "[ FAIL ]"


def load_targets(logger: Logger, build_file: Optional[str] = None) -> dict[str, Node]:
    """
    Locate and load the build file, exiting with status 1 on any problem.

    Args:
    logger: Logger interface for output
    build_file: Explicit build file path (searched for if not given)

    Returns:
    Mapping of target names to nodes
    """
    if build_file:
        build_path = Path(build_file)
    else:
        build_path = find_build_file()
        if build_path is None:
            logger.error(
                f"[red]No build file found ({', '.join(BUILD_FILE_NAMES)})[/red]"
            )
            logger.info("Run [cyan]bt --init[/cyan] to create one")
            raise typer.Exit(1)

    logger.debug(f"Loading build file {escape(str(build_path))}")
    try:
        return load_build_file(build_path)
    except BuildFileError as e:
        logger.error(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)
