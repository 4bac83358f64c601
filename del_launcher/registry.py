"""
In-memory command list and its atomic persistence.

The registry is a plain unsorted list. Membership tests walk it front to
back; command lists hold tens to a few hundred names so a linear scan is
all this needs.
"""

from __future__ import annotations

import os
import tempfile
from typing import Iterable, Iterator

from .common import LauncherError, casefold_name
from .logging_config import get_logger

# Number of extra slots reserved whenever the registry runs out of capacity
INCREMENTAL_ALLOCATION_SIZE = 64


class RegistryGrowthError(LauncherError):
    """Raised when the registry cannot grow to hold another command."""


class NoCommandsError(LauncherError):
    """Raised when there is nothing to persist."""

    def __init__(self):
        super().__init__("no commands found")


class PersistError(LauncherError):
    """
    Raised when writing the command list fails.

    Attributes:
        step: Failing step ("mkstemp", "write", "flush", "rename")
        path: Destination path
        temp_path: Temporary file path, if one was created
        cause: Underlying OS error
    """
    def __init__(self, step: str, path: str, temp_path: str | None, cause: BaseException):
        self.step = step
        self.path = path
        self.temp_path = temp_path
        self.cause = cause
        strerror = getattr(cause, "strerror", None) or str(cause)
        if step == "rename":
            message = f"unable to rename '{temp_path}' to '{path}': {strerror}"
        elif step == "flush":
            message = f"unable to flush changes to '{temp_path}': {strerror}"
        elif step == "mkstemp":
            message = f"mkstemp: {os.path.dirname(path) or '.'}: {strerror}"
        else:
            message = f"{step}: {temp_path}: {strerror}"
        super().__init__(message)


class CommandRegistry:
    """
    Growable set of command names, unique ignoring case.

    Capacity grows in chunks of INCREMENTAL_ALLOCATION_SIZE. add() does not
    check for duplicates; callers that need uniqueness test contains() first
    and persist() drops whatever duplicates remain.
    """

    def __init__(self, names: Iterable[str] = ()):
        self._commands: list[str] = []
        self.capacity = 0
        for name in names:
            self.add(name)

    def __len__(self) -> int:
        return len(self._commands)

    def __iter__(self) -> Iterator[str]:
        return iter(self._commands)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and self.contains(name)

    def __repr__(self) -> str:
        return f"CommandRegistry({self._commands!r})"

    def contains(self, needle: str) -> bool:
        """Check whether a command is in the list, ignoring case."""
        key = casefold_name(needle)
        for command in self._commands:
            if casefold_name(command) == key:
                return True
        return False

    def add(self, command: str) -> None:
        """
        Append a command to the list.

        Raises:
            RegistryGrowthError: If the list could not be resized
        """
        grown = len(self._commands) >= self.capacity
        try:
            self._commands.append(str(command))
        except MemoryError as e:
            raise RegistryGrowthError(
                "could not resize command list" if grown else "could not update command list"
            ) from e
        if grown:
            self.capacity += INCREMENTAL_ALLOCATION_SIZE

    def sorted_unique(self) -> list[str]:
        """
        Return the commands sorted ignoring case, with duplicates removed.

        Only neighbours are compared, so this relies on the sort placing case
        variants of a name next to each other.
        """
        result: list[str] = []
        previous = None
        for command in sorted(self._commands, key=casefold_name):
            key = casefold_name(command)
            if key != previous:
                result.append(command)
            previous = key
        return result

    def persist(self, path: str | os.PathLike[str]) -> int:
        """
        Atomically replace path with the sorted command list.

        The list is written to a temporary file next to path, synced to disk
        and renamed over the destination. Readers see either the old file or
        the new one, never a partial write.

        Args:
            path: Destination file

        Returns:
            Number of commands written

        Raises:
            NoCommandsError: If the registry is empty
            PersistError: If any step fails; the destination is left untouched
        """
        path = os.fspath(path)
        if not self._commands:
            raise NoCommandsError()

        directory = os.path.dirname(path) or "."
        try:
            fd, temp_path = tempfile.mkstemp(prefix=os.path.basename(path), dir=directory)
        except OSError as e:
            raise PersistError("mkstemp", path, None, e) from e

        step = "write"
        try:
            lines = self.sorted_unique()
            with os.fdopen(fd, "w", encoding="utf-8", errors="surrogateescape", newline="\n") as f:
                for command in lines:
                    f.write(f"{command}\n")
                step = "flush"
                f.flush()
                os.fsync(f.fileno())
            step = "rename"
            os.replace(temp_path, path)
        except OSError as e:
            error = PersistError(step, path, temp_path, e)
            try:
                os.unlink(temp_path)
            except OSError as unlink_error:
                get_logger().error(
                    f"could not delete temporary file '{temp_path}': {unlink_error.strerror}"
                )
            raise error from e

        get_logger().debug(f"Wrote {len(lines)} commands to {path}")
        return len(lines)
