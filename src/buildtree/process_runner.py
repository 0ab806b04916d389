"""Process execution abstraction layer.

Node bodies that shell out go through a ProcessRunner, so tests can record
commands instead of spawning processes and the CLI can control how much
subprocess output reaches the terminal.
"""

import os
import platform
import subprocess
import sys
from abc import ABC, abstractmethod
from enum import Enum
from threading import Thread
from typing import Any, Callable, Optional, Union

from buildtree.errors import CommandError
from buildtree.logging import Logger, NullLogger

__all__ = [
    "ProcessRunner",
    "PassthroughProcessRunner",
    "SilentProcessRunner",
    "SingleStreamProcessRunner",
    "OutputTypes",
    "make_process_runner",
    "set_default_process_runner",
    "command",
]


class OutputTypes(Enum):
    """Which subprocess output streams are shown."""

    ALL = "all"
    NONE = "none"
    OUT = "out"
    ERR = "err"


class ProcessRunner(ABC):
    """Abstract interface for running subprocess commands."""

    @abstractmethod
    def run(self, *args: Any, **kwargs: Any) -> subprocess.CompletedProcess:
        """
        Run a subprocess command.

        The signature matches subprocess.run() so implementations can be
        substituted for it directly.

        Raises:
        subprocess.CalledProcessError: If check=True and process exits non-zero
        subprocess.TimeoutExpired: If timeout is exceeded
        """
        ...


class PassthroughProcessRunner(ProcessRunner):
    """Process runner that directly delegates to subprocess.run."""

    def run(self, *args: Any, **kwargs: Any) -> subprocess.CompletedProcess:
        return subprocess.run(*args, **kwargs)


class SilentProcessRunner(ProcessRunner):
    """Process runner that discards stdout and stderr."""

    def run(self, *args: Any, **kwargs: Any) -> subprocess.CompletedProcess:
        kwargs["stdout"] = subprocess.DEVNULL
        kwargs["stderr"] = subprocess.DEVNULL
        return subprocess.run(*args, **kwargs)


def _stream_output(pipe: Any, target: Any) -> None:
    if pipe:
        try:
            for line in pipe:
                target.write(line)
                target.flush()
        except (OSError, ValueError):
            # Pipe closed because the process was killed
            pass


class SingleStreamProcessRunner(ProcessRunner):
    """
    Process runner that streams one of stdout/stderr and discards the other.

    The kept stream is copied line by line from a background thread; from the
    caller's side the call is still synchronous.
    """

    JOIN_TIMEOUT_SECS = 1.0

    def __init__(self, keep_stdout: bool, logger: Optional[Logger] = None) -> None:
        self._keep_stdout = keep_stdout
        self._logger = logger if logger is not None else NullLogger()

    def run(self, *args: Any, **kwargs: Any) -> subprocess.CompletedProcess:
        check = kwargs.pop("check", False)
        timeout = kwargs.pop("timeout", None)
        kwargs.pop("capture_output", None)

        kwargs["stdout"] = subprocess.PIPE if self._keep_stdout else subprocess.DEVNULL
        kwargs["stderr"] = subprocess.DEVNULL if self._keep_stdout else subprocess.PIPE
        kwargs["text"] = True
        kwargs["bufsize"] = 1

        process = subprocess.Popen(*args, **kwargs)
        pipe = process.stdout if self._keep_stdout else process.stderr
        target = sys.stdout if self._keep_stdout else sys.stderr
        thread = Thread(target=_stream_output, args=(pipe, target), name="output-streamer")
        thread.start()

        try:
            returncode = process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            process.kill()
            process.wait()
            pipe.close()
            thread.join(timeout=self.JOIN_TIMEOUT_SECS)
            raise

        # Drain before closing; the pipe hits EOF once the process has exited
        thread.join(timeout=self.JOIN_TIMEOUT_SECS)
        pipe.close()

        if thread.is_alive():
            self._logger.warn(
                f"Stream thread did not complete within {self.JOIN_TIMEOUT_SECS} seconds"
            )

        cmd = args[0] if args else kwargs.get("args", [])
        if check and returncode != 0:
            raise subprocess.CalledProcessError(returncode, cmd)
        return subprocess.CompletedProcess(args=cmd, returncode=returncode)


def make_process_runner(output_type: OutputTypes, logger: Optional[Logger] = None) -> ProcessRunner:
    """
    Factory function for creating ProcessRunner instances.

    Raises:
    ValueError: If an invalid OutputTypes value is provided
    """
    match output_type:
        case OutputTypes.ALL:
            return PassthroughProcessRunner()
        case OutputTypes.NONE:
            return SilentProcessRunner()
        case OutputTypes.OUT:
            return SingleStreamProcessRunner(keep_stdout=True, logger=logger)
        case OutputTypes.ERR:
            return SingleStreamProcessRunner(keep_stdout=False, logger=logger)
        case _:
            raise ValueError(f"Invalid OutputTypes: {output_type}")


_default_runner: Optional[ProcessRunner] = None


def set_default_process_runner(runner: Optional[ProcessRunner]) -> None:
    """Set the runner used by command() bodies created without one."""
    global _default_runner
    _default_runner = runner


def _platform_shell() -> list[str]:
    if platform.system() == "Windows":
        return ["cmd", "/c"]
    return ["bash", "-c"]


def command(
    cmd: str,
    cwd: Optional[Union[str, os.PathLike]] = None,
    runner: Optional[ProcessRunner] = None,
) -> Callable[[], None]:
    """
    Build a node body that runs a shell command.

    Args:
    cmd: Command line, run through bash (cmd on Windows)
    cwd: Working directory (default: current directory at run time)
    runner: Process runner (default: the runner set with
        set_default_process_runner, else pass output through)

    Returns:
    A zero-argument body that raises CommandError on non-zero exit
    """
    def body() -> None:
        active = runner or _default_runner or PassthroughProcessRunner()
        result = active.run(_platform_shell() + [cmd], cwd=cwd, check=False)
        if result.returncode != 0:
            raise CommandError(cmd, result.returncode)

    body.__name__ = f"command({cmd!r})"
    return body
