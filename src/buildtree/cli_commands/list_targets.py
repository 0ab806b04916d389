from __future__ import annotations

from typing import Optional

from rich.markup import escape
from rich.table import Table

from buildtree.cli_commands import load_targets
from buildtree.logging import Logger
from buildtree.nodes import File


def list_targets(logger: Logger, build_file: Optional[str] = None):
    """
    List all targets defined by the build file.
    """
    targets = load_targets(logger, build_file)
    if not targets:
        logger.warn("[yellow]The build file defines no targets[/yellow]")
        return

    table = Table(show_edge=False, show_header=False, box=None, padding=(0, 2))
    table.add_column("Target", style="bold cyan", no_wrap=True)
    table.add_column("Kind", style="dim")
    table.add_column("Dependencies", style="white", max_width=80)

    for name in sorted(targets):
        node = targets[name]
        kind = f"file {node.target}" if isinstance(node, File) else "action"
        deps = ", ".join(dep.name for dep in node.deps)
        table.add_row(escape(name), escape(kind), escape(deps))

    logger.info(table)
