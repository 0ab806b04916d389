"""Graph nodes: plain actions and staleness-tracked file targets."""

from __future__ import annotations

import itertools
import os
import time
from abc import ABC, abstractmethod
from typing import Any, Callable, Iterable, Optional, Union

from rich.markup import escape

from buildtree.errors import (
    DependencyFailedError,
    MissingDependencyStatusError,
    ResourceError,
)
from buildtree.logging import Logger, NullLogger
from buildtree.state import EPOCH, Failure, State, Status, Success
from buildtree.timestamps import FileSystemTimestamps, TimestampProvider

__all__ = [
    "Body",
    "Node",
    "Action",
    "File",
    "file",
]

Body = Callable[[], Any]

_node_ids = itertools.count(1)
_null_logger = NullLogger()
_default_timestamps = FileSystemTimestamps()


def _no_op() -> None:
    pass


class Node(ABC):
    """
    A unit of work in the dependency graph.

    Nodes are identified by ``node_id``, a unique integer assigned at
    construction. Two nodes with identical deps and bodies are still distinct.
    Dependencies are referenced, never copied, so subgraphs can be shared.
    """

    def __init__(
        self,
        deps: Optional[Iterable["Node"]] = None,
        body: Optional[Body] = None,
        name: Optional[str] = None,
    ):
        self.node_id: int = next(_node_ids)
        self.deps: list[Node] = list(deps) if deps is not None else []
        self.body: Body = body if body is not None else _no_op
        self._name = name

    @property
    def name(self) -> str:
        return self._name if self._name else self._default_name()

    @name.setter
    def name(self, value: Optional[str]) -> None:
        self._name = value

    @property
    def has_name(self) -> bool:
        return bool(self._name)

    @abstractmethod
    def _default_name(self) -> str:
        ...

    @abstractmethod
    def _execute(self, deps_time: float, logger: Logger) -> Status:
        """
        Produce this node's status once all dependencies have succeeded.

        Args:
        deps_time: Newest timestamp among the dependencies (EPOCH if none)
        logger: Logger for progress output

        Returns:
        The Status to record for this node
        """
        ...

    def run(self, state: State, logger: Optional[Logger] = None) -> State:
        """
        Run this node against the statuses accumulated so far.

        All dependencies must already have a status in ``state``. If any of
        them failed, this node is recorded as failed without running its body.

        Args:
        state: State of the current run
        logger: Optional logger for progress output

        Returns:
        A new State with this node's status appended

        Raises:
        MissingDependencyStatusError: If a dependency has not run yet
        """
        if logger is None:
            logger = _null_logger

        deps_time = EPOCH
        for dep in self.deps:
            status = state.status_of(dep)
            if status is None:
                raise MissingDependencyStatusError(self, dep)
            if isinstance(status, Failure):
                logger.debug(f"Skipping {escape(self.name)}: dependency {escape(dep.name)} failed")
                return state.append(Failure(self, DependencyFailedError(dep)))
            deps_time = max(deps_time, status.timestamp)

        logger.trace(f"{escape(self.name)}: newest dependency timestamp {deps_time}")
        return state.append(self._execute(deps_time, logger))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} #{self.node_id} {self.name!r}>"


class Action(Node):
    """A node whose body runs every time the node is visited."""

    def _default_name(self) -> str:
        return f"action#{self.node_id}"

    def _execute(self, deps_time: float, logger: Logger) -> Status:
        logger.info(f"Running: {escape(self.name)}")
        try:
            self.body()
        except Exception as e:
            return Failure(self, e)
        return Success(self, max(time.time(), deps_time), ran=True)


class File(Node):
    """
    A node bound to a file on disk.

    The body runs only when the target is missing or is not newer than the
    newest of its dependencies. After the body runs the target is stat'ed
    again, and the recorded timestamp is never older than the dependencies.
    """

    def __init__(
        self,
        target: Union[str, os.PathLike],
        deps: Optional[Iterable[Node]] = None,
        body: Optional[Body] = None,
        name: Optional[str] = None,
        timestamps: Optional[TimestampProvider] = None,
    ):
        super().__init__(deps, body, name)
        self.target = os.fspath(target)
        self.timestamps = timestamps if timestamps is not None else _default_timestamps

    def _default_name(self) -> str:
        return self.target

    def _target_time(self) -> Optional[float]:
        return self.timestamps.stat(self.target)

    def _execute(self, deps_time: float, logger: Logger) -> Status:
        try:
            target_time = self._target_time()
        except ResourceError as e:
            return Failure(self, e)

        if target_time is not None and target_time > deps_time:
            logger.debug(f"Up to date: {escape(self.name)}")
            return Success(self, target_time, ran=False)

        reason = "missing" if target_time is None else "older than its dependencies"
        logger.info(f"Running: {escape(self.name)} ({reason})")
        try:
            self.body()
            produced_time = self._target_time()
        except Exception as e:
            return Failure(self, e)

        if produced_time is None:
            logger.warn(f"[yellow]Target '{escape(self.target)}' still missing after its body ran[/yellow]")
            produced_time = EPOCH
        return Success(self, max(produced_time, deps_time), ran=True)


def file(path: Union[str, os.PathLike], timestamps: Optional[TimestampProvider] = None) -> File:
    """
    Create a body-less File node for a source file.

    Args:
    path: Path of the source file
    timestamps: Optional timestamp provider (defaults to the filesystem)

    Returns:
    A File node with no dependencies
    """
    return File(path, timestamps=timestamps)
