"""Command-line interface for Build Tree."""

from __future__ import annotations

from dataclasses import replace
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from buildtree import __version__
from buildtree.cli_commands.init_buildfile import init_buildfile
from buildtree.cli_commands.list_targets import list_targets
from buildtree.cli_commands.run_targets import run_targets
from buildtree.cli_commands.show_tree import show_tree
from buildtree.config import Config, ConfigError, load_config
from buildtree.console_logger import ConsoleLogger
from buildtree.logging import Logger, LogLevel, parse_log_level
from buildtree.process_runner import OutputTypes, make_process_runner, set_default_process_runner

app = typer.Typer(
    help="Build Tree - incremental builds from dependency graphs written in Python",
    add_completion=False,
)


def _apply_overrides(
    logger: Logger,
    config: Config,
    log_level: Optional[str],
    keep_going: bool,
    build_file: Optional[str],
    watch_path: Optional[str],
    output: Optional[str],
) -> Config:
    """Layer command-line flags over the file-based configuration."""
    overrides = {}
    if log_level is not None:
        try:
            overrides["log_level"] = parse_log_level(log_level)
        except ValueError as e:
            logger.error(f"[red]{escape(str(e))}[/red]")
            raise typer.Exit(1)
    if keep_going:
        overrides["keep_going"] = True
    if build_file is not None:
        overrides["build_file"] = build_file
    if watch_path is not None:
        overrides["watch_path"] = watch_path
    if output is not None:
        try:
            overrides["output"] = OutputTypes(output.lower())
        except ValueError:
            valid = ", ".join(t.value for t in OutputTypes)
            logger.error(f"[red]Invalid output mode '{escape(output)}' (expected one of: {valid})[/red]")
            raise typer.Exit(1)
    return replace(config, **overrides)


@app.command()
def main_command(
    targets: Optional[list[str]] = typer.Argument(
        None, help="Targets to run (defaults to the 'default' target)"
    ),
    build_file: Optional[str] = typer.Option(
        None, "--file", "-f", help="Build file to load instead of searching for one"
    ),
    list_opt: bool = typer.Option(False, "--list", "-l", help="List all targets"),
    tree: Optional[str] = typer.Option(None, "--tree", help="Show dependency tree for a target"),
    watch_path: Optional[str] = typer.Option(
        None, "--watch", "-w", help="Re-run targets whenever this path changes"
    ),
    keep_going: bool = typer.Option(
        False, "--keep-going", "-k", help="Keep running unaffected nodes after a failure"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", "-L", help="fatal, error, warn, info, debug or trace"
    ),
    output: Optional[str] = typer.Option(
        None, "--output", "-o", help="Command output to show: all, none, out or err"
    ),
    init: bool = typer.Option(False, "--init", help="Create a buildfile.py"),
    version: bool = typer.Option(False, "--version", "-v", help="Show version"),
):
    """Run build targets, rebuilding only what is out of date."""
    logger = ConsoleLogger(Console(), LogLevel.INFO)

    if version:
        logger.info(f"build-tree version {__version__}")
        return

    if init:
        init_buildfile(logger)
        return

    try:
        config = load_config(logger=logger)
    except ConfigError as e:
        logger.error(f"[red]{escape(str(e))}[/red]")
        raise typer.Exit(1)

    config = _apply_overrides(
        logger, config, log_level, keep_going, build_file, watch_path, output
    )
    logger.push_level(config.log_level)
    set_default_process_runner(make_process_runner(config.output, logger))

    if list_opt:
        list_targets(logger, config.build_file)
        return

    if tree is not None:
        show_tree(logger, tree, config.build_file)
        return

    run_targets(
        logger,
        targets or [],
        config.build_file,
        keep_going=config.keep_going,
        watch_path=config.watch_path,
    )


def main():
    """Console script entry point."""
    app()


if __name__ == "__main__":
    main()
