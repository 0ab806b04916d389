"""Exception hierarchy for Build Tree."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from buildtree.nodes import Node
    from buildtree.state import State


class BuildTreeError(Exception):
    """Base class for all buildtree errors."""

    pass


class CycleError(BuildTreeError):
    """Raised when a dependency cycle is detected.

    Attributes:
        cycle: The nodes forming the cycle, starting and ending with the
            same node
    """

    def __init__(self, cycle: Sequence["Node"]):
        self.cycle = list(cycle)
        path = " -> ".join(node.name for node in self.cycle)
        super().__init__(f"Dependency cycle detected: {path}")


class ExecutionError(BuildTreeError):
    """Raised by the executor when a node fails.

    Attributes:
        node: The first node that failed
        error: The underlying exception recorded for that node
        state: The run state up to and including the failure
    """

    def __init__(self, node: "Node", error: BaseException, state: "State"):
        self.node = node
        self.error = error
        self.state = state
        super().__init__(f"Node '{node.name}' failed: {error}")


class ResourceError(BuildTreeError):
    """Raised when a target's timestamp cannot be read for a reason other
    than the target not existing (e.g. permission denied)."""

    def __init__(self, path: str, cause: OSError):
        self.path = path
        self.cause = cause
        super().__init__(f"Cannot stat '{path}': {cause}")


class DependencyFailedError(BuildTreeError):
    """Recorded for a node that was not executed because a dependency failed."""

    def __init__(self, dependency: "Node"):
        self.dependency = dependency
        super().__init__(f"Dependency '{dependency.name}' failed")


class MissingDependencyStatusError(BuildTreeError):
    """Raised when a node runs before one of its dependencies has a status.

    This can only happen when nodes are run outside of linearized order.
    """

    def __init__(self, node: "Node", dependency: "Node"):
        self.node = node
        self.dependency = dependency
        super().__init__(
            f"Node '{node.name}' ran before its dependency '{dependency.name}'"
        )


class CommandError(BuildTreeError):
    """Raised when a shell command body exits with a non-zero status."""

    def __init__(self, cmd: str, returncode: int):
        self.cmd = cmd
        self.returncode = returncode
        super().__init__(f"Command failed with exit code {returncode}: {cmd}")


class ConfigError(BuildTreeError):
    """Raised when a configuration file is invalid."""

    pass


class BuildFileError(BuildTreeError):
    """Raised when a build file cannot be found or loaded, or names an
    unknown target."""

    pass
