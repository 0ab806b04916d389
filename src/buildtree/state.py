"""Per-run execution state: node statuses in completion order."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterator, Optional, Union

if TYPE_CHECKING:
    from buildtree.nodes import Node

# Timestamp recorded for targets that do not exist
EPOCH = 0.0


@dataclass(frozen=True)
class Success:
    """
    A node completed without error.

    Attributes:
        node: The node this status belongs to
        timestamp: POSIX timestamp the node is considered current as of
        ran: Whether the node's body executed during this run
    """

    node: "Node"
    timestamp: float
    ran: bool = True

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Failure:
    """A node's body (or its timestamp lookup) raised an error."""

    node: "Node"
    error: BaseException

    @property
    def ok(self) -> bool:
        return False


Status = Union[Success, Failure]


@dataclass(frozen=True, eq=False)
class State:
    """
    Append-only record of the statuses produced during one run.

    Instances are immutable: append() returns a new State and leaves the
    receiver untouched, so every version can be handed forward safely.

    Successive versions share one status log and a node_id index into it.
    Each State sees only the first ``_length`` entries, so appending to the
    newest version extends the shared log in place. Appending to an older
    version copies its prefix first.
    """

    _log: list[Status] = field(default_factory=list, repr=False)
    _index: dict[int, list[int]] = field(default_factory=dict, repr=False)
    _length: int = 0

    @property
    def statuses(self) -> tuple[Status, ...]:
        return tuple(self._log[: self._length])

    def append(self, status: Status) -> "State":
        log, index = self._log, self._index
        if len(log) != self._length:
            log = self._log[: self._length]
            index = {}
            for position, existing in enumerate(log):
                index.setdefault(existing.node.node_id, []).append(position)

        index.setdefault(status.node.node_id, []).append(len(log))
        log.append(status)
        return State(log, index, self._length + 1)

    def status_of(self, node: "Node") -> Optional[Status]:
        """
        Get the status recorded for a node in this run.

        Args:
        node: Node to look up (matched by node_id)

        Returns:
        The node's Status, or None if it has not run yet
        """
        for position in reversed(self._index.get(node.node_id, ())):
            if position < self._length:
                return self._log[position]
        return None

    @property
    def failures(self) -> list[Failure]:
        return [s for s in self if isinstance(s, Failure)]

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def executed(self) -> list["Node"]:
        """Nodes whose bodies actually ran, in execution order."""
        return [s.node for s in self if isinstance(s, Success) and s.ran]

    def __iter__(self) -> Iterator[Status]:
        return iter(self._log[: self._length])

    def __len__(self) -> int:
        return self._length
