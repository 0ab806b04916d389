from rich.console import Console

from buildtree.logging import Logger, LogLevel


class ConsoleLogger(Logger):
    """Logger that prints rich markup and renderables to a Console.

    The active threshold is the top of a level stack. The base level given at
    construction can never be popped, so a CLI flag or config value pushed on
    top of it can always be undone.
    """

    def __init__(self, console: Console, level: LogLevel = LogLevel.INFO) -> None:
        self._console = console
        self._levels = [level]

    @property
    def level(self) -> LogLevel:
        return self._levels[-1]

    def enabled(self, level: LogLevel) -> bool:
        return level.value <= self.level.value

    def log(self, level: LogLevel = LogLevel.INFO, *args, **kwargs) -> None:
        """Print ``args`` with Console.print() when ``level`` passes the threshold."""
        if self.enabled(level):
            self._console.print(*args, **kwargs)

    def push_level(self, level: LogLevel) -> None:
        self._levels.append(level)

    def pop_level(self) -> LogLevel:
        """Drop the most recently pushed level and return it.

        Raises:
            RuntimeError: If only the base level is left
        """
        if len(self._levels) == 1:
            raise RuntimeError("Cannot pop the base log level")
        return self._levels.pop()
