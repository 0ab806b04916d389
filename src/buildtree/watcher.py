"""Change-triggered re-run loop.

The loop consumes batches of filesystem changes from a ChangeSource and
performs one full run per batch. Changes that happen while a run is in
progress are buffered by the source and delivered together as the next
batch, so a burst of edits during a long build causes at most one more run.
"""

from __future__ import annotations

import os
import threading
from abc import ABC, abstractmethod
from typing import Iterator, Optional, Union

import watchfiles
from rich.markup import escape

from buildtree.errors import BuildTreeError
from buildtree.executor import Executor
from buildtree.logging import LogLevel
from buildtree.nodes import Node

__all__ = [
    "Change",
    "ChangeSource",
    "WatchfilesChangeSource",
    "watch",
]

# (change kind, path), e.g. ("modified", "/src/main.c")
Change = tuple[str, str]


class ChangeSource(ABC):
    """
    Abstract source of filesystem change notifications.
    """

    @abstractmethod
    def changes(
        self, path: str, stop_event: Optional[threading.Event] = None
    ) -> Iterator[set[Change]]:
        """
        Yield batches of changes under a path until stopped.

        Args:
        path: File or directory to watch
        stop_event: When set, the iterator finishes

        Returns:
        Iterator of change batches; never empty batches
        """
        ...


class WatchfilesChangeSource(ChangeSource):
    """
    Change source backed by watchfiles.
    """

    def __init__(self, debounce_ms: int = 1600, force_polling: Optional[bool] = None) -> None:
        self.debounce_ms = debounce_ms
        self.force_polling = force_polling

    def changes(
        self, path: str, stop_event: Optional[threading.Event] = None
    ) -> Iterator[set[Change]]:
        for batch in watchfiles.watch(
            path,
            debounce=self.debounce_ms,
            stop_event=stop_event,
            force_polling=self.force_polling,
        ):
            yield {(change.name, changed_path) for change, changed_path in batch}


def watch(
    path: Union[str, os.PathLike],
    *roots: Node,
    executor: Optional[Executor] = None,
    source: Optional[ChangeSource] = None,
    stop_event: Optional[threading.Event] = None,
    run_on_start: bool = False,
) -> None:
    """
    Re-run nodes every time something under ``path`` changes.

    Node failures and cycles are logged and the loop keeps watching. Errors
    raised by the change source itself propagate to the caller.

    Args:
    path: File or directory to watch
    *roots: Nodes to run on every change
    executor: Executor to run with (default: silent, stop at first failure)
    source: Change notification source (default: watchfiles)
    stop_event: Set to end the loop; a run already in progress completes
    run_on_start: Run once before waiting for the first change
    """
    path = os.fspath(path)
    if executor is None:
        executor = Executor()
    if source is None:
        source = WatchfilesChangeSource()
    logger = executor.logger

    if run_on_start:
        _run_once(executor, roots)

    logger.info(f"Watching {escape(path)} for changes...")
    for batch in source.changes(path, stop_event):
        if stop_event is not None and stop_event.is_set():
            break
        logger.info(f"Detected {len(batch)} change(s) in {escape(path)}")
        if logger.enabled(LogLevel.TRACE):
            for kind, changed_path in sorted(batch):
                logger.trace(f"  {kind}: {escape(changed_path)}")
        _run_once(executor, roots)

    logger.debug(f"Stopped watching {escape(path)}")


def _run_once(executor: Executor, roots: tuple[Node, ...]) -> None:
    """Run once, logging failures instead of raising them."""
    try:
        executor.run(*roots)
    except BuildTreeError as e:
        executor.logger.error(f"[red]Run failed: {escape(str(e))}[/red]")

