"""Run orchestration: linearize, execute in order, report failures."""

from __future__ import annotations

from typing import Optional

from rich.markup import escape

from buildtree.errors import DependencyFailedError, ExecutionError
from buildtree.graph import linearize
from buildtree.logging import Logger, LogLevel, NullLogger
from buildtree.nodes import Node
from buildtree.state import Failure, State


class Executor:
    """Executes nodes in dependency order with incremental execution logic.

    By default the run stops at the first failing node and the remaining
    nodes are left unexecuted. With ``keep_going`` every node is visited;
    nodes downstream of a failure are recorded as failed without running
    their bodies.
    """

    def __init__(self, logger: Optional[Logger] = None, keep_going: bool = False):
        """Initialize executor.

        Args:
            logger: Logger for progress and failure output
            keep_going: Continue past failures instead of stopping at the first
        """
        self.logger = logger if logger is not None else NullLogger()
        self.keep_going = keep_going

    def run(self, *roots: Node) -> State:
        """Run the given nodes and everything they depend on.

        Args:
            *roots: Nodes to bring up to date

        Returns:
            The State of the completed run

        Raises:
            CycleError: If the graph has a cycle (nothing has executed)
            ExecutionError: If any node failed; carries the first failing
                node and the state accumulated so far
        """
        order = linearize(roots)
        if self.logger.enabled(LogLevel.TRACE):
            names = ", ".join(node.name for node in order)
            self.logger.trace(f"Execution order: {escape(names)}")

        state = State()
        for node in order:
            state = node.run(state, self.logger)
            status = state.status_of(node)
            if isinstance(status, Failure):
                self._report_failure(status)
                if not self.keep_going:
                    raise ExecutionError(node, status.error, state)

        if state.failures:
            first = state.failures[0]
            raise ExecutionError(first.node, first.error, state)

        ran = len(state.executed)
        self.logger.debug(f"Run complete: {ran} executed, {len(state) - ran} up to date")
        return state

    def _report_failure(self, failure: Failure) -> None:
        if isinstance(failure.error, DependencyFailedError):
            self.logger.warn(
                f"[yellow]Skipped {escape(failure.node.name)}: {escape(str(failure.error))}[/yellow]"
            )
        else:
            self.logger.error(
                f"[red]{escape(failure.node.name)} failed: {escape(str(failure.error))}[/red]"
            )


def run(*roots: Node) -> State:
    """Run nodes with a silent, stop-at-first-failure executor."""
    return Executor().run(*roots)
