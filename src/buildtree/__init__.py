"""Build Tree - incremental task execution over dependency graphs built in Python."""

__version__ = "0.1.0"

from buildtree.errors import (
    BuildFileError,
    BuildTreeError,
    CommandError,
    ConfigError,
    CycleError,
    DependencyFailedError,
    ExecutionError,
    MissingDependencyStatusError,
    ResourceError,
)
from buildtree.executor import Executor, run
from buildtree.graph import build_dependency_tree, linearize
from buildtree.nodes import Action, File, Node, file
from buildtree.process_runner import command
from buildtree.state import EPOCH, Failure, State, Status, Success
from buildtree.timestamps import FileSystemTimestamps, TimestampProvider
from buildtree.watcher import ChangeSource, WatchfilesChangeSource, watch

__all__ = [
    "__version__",
    "Action",
    "File",
    "Node",
    "file",
    "command",
    "run",
    "watch",
    "Executor",
    "linearize",
    "build_dependency_tree",
    "State",
    "Status",
    "Success",
    "Failure",
    "EPOCH",
    "TimestampProvider",
    "FileSystemTimestamps",
    "ChangeSource",
    "WatchfilesChangeSource",
    "BuildTreeError",
    "BuildFileError",
    "CommandError",
    "ConfigError",
    "CycleError",
    "DependencyFailedError",
    "ExecutionError",
    "MissingDependencyStatusError",
    "ResourceError",
]
