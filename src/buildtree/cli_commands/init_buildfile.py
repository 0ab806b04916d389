"""Initialize a new build file."""

from __future__ import annotations

from pathlib import Path

import typer

from buildtree.logging import Logger

TEMPLATE = '''"""Build Tree build file.

Every module-level node is a target: run it with `bt <name>`.
Running `bt` with no arguments runs the target called `default`.
"""

from buildtree import Action, File, command, file

# Source files are plain file nodes without a body.
# source = file("src/main.c")

# A file target is rebuilt when it is missing or older than a dependency.
# binary = File("build/main", [source], command("cc -o build/main src/main.c"))

# An action runs every time it is requested.
# test = Action([binary], command("./build/main --self-test"))

# default = binary
'''


def init_buildfile(logger: Logger):
    """
    Create a build file with commented examples.
    """
    build_path = Path("buildfile.py")
    if build_path.exists():
        logger.error("[red]buildfile.py already exists[/red]")
        raise typer.Exit(1)

    build_path.write_text(TEMPLATE)
    logger.info(f"[green]Created {build_path}[/green]")
    logger.info("Edit the file to define your targets")
