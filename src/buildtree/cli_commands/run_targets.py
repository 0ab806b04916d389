"""Run targets command implementation."""

from __future__ import annotations

from typing import Optional

import typer
from rich.markup import escape

from buildtree.buildfile import select_targets
from buildtree.cli_commands import (
    get_action_failure_string,
    get_action_success_string,
    load_targets,
)
from buildtree.errors import BuildFileError, CycleError, ExecutionError
from buildtree.executor import Executor
from buildtree.logging import Logger
from buildtree.watcher import watch


def run_targets(
    logger: Logger,
    target_names: list[str],
    build_file: Optional[str] = None,
    keep_going: bool = False,
    watch_path: Optional[str] = None,
) -> None:
    """
    Run targets from the build file, once or on every change.

    Args:
    logger: Logger interface for output
    target_names: Targets to run (the "default" target if empty)
    build_file: Path to the build file (optional)
    keep_going: Keep running unaffected nodes after a failure
    watch_path: Re-run whenever something under this path changes
    """
    targets = load_targets(logger, build_file)

    try:
        roots = select_targets(targets, target_names)
    except BuildFileError as e:
        logger.error(f"[red]{escape(str(e))}[/red]")
        if targets:
            logger.info("\nAvailable targets:")
            for name in sorted(targets):
                logger.info(f"  - {escape(name)}")
        raise typer.Exit(1)

    label = escape(", ".join(node.name for node in roots))
    executor = Executor(logger, keep_going=keep_going)

    if watch_path:
        try:
            watch(watch_path, *roots, executor=executor, run_on_start=True)
        except KeyboardInterrupt:
            logger.info("Stopped watching")
        return

    try:
        state = executor.run(*roots)
    except CycleError as e:
        logger.error(f"[red]{get_action_failure_string()} {escape(str(e))}[/red]")
        raise typer.Exit(1)
    except ExecutionError as e:
        failed = len(e.state.failures)
        logger.error(
            f"[red]{get_action_failure_string()} {label} failed: {escape(str(e))} "
            f"({failed} node(s) failed)[/red]"
        )
        raise typer.Exit(1)

    if state.executed:
        logger.info(
            f"[green]{get_action_success_string()} {label} completed successfully[/green]"
        )
    else:
        logger.info(f"[green]{get_action_success_string()} {label} already up to date[/green]")
