"""
Shell-style executable lookup over a colon-separated search path.

Mirrors POSIX "Command Search and Execution": a name containing a slash is
used as-is, anything else is looked up in each PATH component in order. Every
check here is inherently racy; the file may change between the test and the
eventual exec.
"""

from __future__ import annotations

import os
import stat

from .common import LauncherError
from .logging_config import get_logger


def _path_max() -> int:
    try:
        return os.pathconf("/", "PC_PATH_MAX")
    except (ValueError, OSError, AttributeError):
        return 4096


MAX_PATH_LENGTH = _path_max()


class PathTooLongError(LauncherError):
    """Raised when a search path candidate would not fit in PATH_MAX."""

    def __init__(self, candidate: str, limit: int = MAX_PATH_LENGTH):
        self.candidate = candidate
        self.limit = limit
        super().__init__(f"candidate path exceeds {limit} bytes: {candidate[:64]}...")


def can_execute(path: str) -> bool:
    """
    Check whether path is a regular file the current user may execute.

    Args:
        path: Relative or absolute path of the command

    Returns:
        True if access(2) grants execute permission and the path is a
        regular file
    """
    try:
        if not os.access(path, os.X_OK):
            return False
        return stat.S_ISREG(os.stat(path).st_mode)
    except (OSError, ValueError):
        return False


def command_path(command: str, search_path: str | None = None) -> str | None:
    """
    Resolve a command name to the path that a shell would execute.

    Args:
        command: Command name or path
        search_path: Colon-separated directories; defaults to $PATH

    Returns:
        Path of the executable, or None when nothing matches or the search
        path is unset

    Raises:
        PathTooLongError: If a joined candidate reaches MAX_PATH_LENGTH
    """
    if "/" in command:
        return command if can_execute(command) else None

    if search_path is None:
        search_path = os.environ.get("PATH")
        if search_path is None:
            return None

    for component in search_path.split(":"):
        # Per POSIX 8.3, a zero-length prefix is the working directory
        if not component:
            prefix = "./"
        elif not component.endswith("/"):
            prefix = component + "/"
        else:
            prefix = component

        candidate = prefix + command
        if len(os.fsencode(candidate)) >= MAX_PATH_LENGTH:
            raise PathTooLongError(candidate)

        if can_execute(candidate):
            return candidate

    return None


def resolves(command: str, search_path: str | None = None) -> bool:
    """Return True if command_path() finds the command; overlong paths do not resolve."""
    try:
        return command_path(command, search_path) is not None
    except PathTooLongError as e:
        get_logger().debug(f"{command}: {e.message}")
        return False
