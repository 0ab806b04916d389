"""Timestamp lookup abstraction layer.

File nodes read their target's modification time through this interface,
allowing tests to substitute a fake clock for the filesystem.
"""

from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Optional

from buildtree.errors import ResourceError

__all__ = [
    "TimestampProvider",
    "FileSystemTimestamps",
]


class TimestampProvider(ABC):
    """Abstract interface for querying a resource's modification time."""

    @abstractmethod
    def stat(self, path: str) -> Optional[float]:
        """
        Get the modification time of a resource.

        Args:
        path: Path of the resource

        Returns:
        POSIX timestamp of the last modification, or None if the resource
        does not exist

        Raises:
        ResourceError: If the resource exists but cannot be inspected
        """
        ...


class FileSystemTimestamps(TimestampProvider):
    """Timestamp provider backed by os.stat()."""

    def stat(self, path: str) -> Optional[float]:
        try:
            return os.stat(path).st_mtime
        except FileNotFoundError:
            return None
        except NotADirectoryError:
            # A path component is a file, so the target cannot exist
            return None
        except OSError as e:
            raise ResourceError(path, e) from e
