"""Logging infrastructure for Build Tree.

Provides the Logger interface used for dependency injection of logging
functionality throughout the engine, the CLI and the watch loop.
"""

from __future__ import annotations

import enum
from abc import ABC, abstractmethod


class LogLevel(enum.Enum):
    """Log verbosity levels for buildtree diagnostic messages.

    Lower numeric values represent higher severity / less verbosity.
    """
    FATAL = 0  # Only unrecoverable errors (cycles, unloadable build files)
    ERROR = 1  # Fatal errors plus node failures
    WARN = 2   # Errors plus warnings (targets still missing after their body ran)
    INFO = 3   # Warnings plus normal execution progress (default)
    DEBUG = 4  # Info plus up-to-date nodes and timestamps
    TRACE = 5  # Debug plus linearized order and dependency lookups


class Logger(ABC):
    """Abstract logger with a stack of active levels."""

    @abstractmethod
    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        ...

    @abstractmethod
    def push_level(self, level: LogLevel) -> None:
        ...

    @abstractmethod
    def pop_level(self) -> LogLevel:
        ...

    def enabled(self, level: LogLevel) -> bool:
        """Whether a message at ``level`` would be shown."""
        return True

    def fatal(self, *args, **kwargs) -> None:
        self.log(LogLevel.FATAL, *args, **kwargs)

    def error(self, *args, **kwargs) -> None:
        self.log(LogLevel.ERROR, *args, **kwargs)

    def warn(self, *args, **kwargs) -> None:
        self.log(LogLevel.WARN, *args, **kwargs)

    def info(self, *args, **kwargs) -> None:
        self.log(LogLevel.INFO, *args, **kwargs)

    def debug(self, *args, **kwargs) -> None:
        self.log(LogLevel.DEBUG, *args, **kwargs)

    def trace(self, *args, **kwargs) -> None:
        self.log(LogLevel.TRACE, *args, **kwargs)


class NullLogger(Logger):
    """Logger that discards everything. Used by the module-level run()."""

    def enabled(self, level: LogLevel) -> bool:
        return False

    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        pass

    def push_level(self, level: LogLevel) -> None:
        pass

    def pop_level(self) -> LogLevel:
        return LogLevel.INFO


def parse_log_level(name: str) -> LogLevel:
    """Convert a level name such as ``"debug"`` to a LogLevel.

    Raises:
        ValueError: If the name is not a known level
    """
    try:
        return LogLevel[name.strip().upper()]
    except KeyError:
        valid = ", ".join(level.name.lower() for level in LogLevel)
        raise ValueError(f"Invalid log level '{name}' (expected one of: {valid})")
