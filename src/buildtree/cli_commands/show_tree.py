from __future__ import annotations

from typing import Optional

import typer
from rich.markup import escape
from rich.tree import Tree

from buildtree.cli_commands import load_targets
from buildtree.graph import build_dependency_tree
from buildtree.logging import Logger


def show_tree(logger: Logger, target_name: str, build_file: Optional[str] = None):
    """
    Show dependency tree structure.
    """
    targets = load_targets(logger, build_file)

    node = targets.get(target_name)
    if node is None:
        logger.error(f"[red]Target not found: {escape(target_name)}[/red]")
        raise typer.Exit(1)

    tree = _build_rich_tree(build_dependency_tree(node))
    logger.info(tree)


def _build_rich_tree(dep_tree: dict) -> Tree:
    """
    Build a Rich Tree visualization from a dependency tree structure.

    Args:
        dep_tree: Nested dictionary representing node dependencies

    Returns:
        Rich Tree object for terminal display
    """
    label = escape(dep_tree["name"])
    if dep_tree["kind"] == "File":
        label = f"[cyan]{label}[/cyan]"
    if dep_tree.get("cycle"):
        label = f"{label} [red](cycle)[/red]"
    tree = Tree(label)

    for dep in dep_tree.get("deps", []):
        tree.add(_build_rich_tree(dep))

    return tree
