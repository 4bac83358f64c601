"""
Common utilities shared across del_launcher modules.
"""

from __future__ import annotations

import os
import sys
from typing import IO, Any

# Process exit statuses
EXIT_SUCCESS = 0
EXIT_FATAL = 1
EXIT_NONFATAL = 2
SIGNAL_EXIT_BASE = 128

DESKTOP_ENTRY_EXTENSION = ".desktop"
DEFAULT_COMMAND_LIST_BASENAME = ".del"
DEFAULT_MENU_COMMAND = "dmenu"


class LauncherError(Exception):
    """
    Base exception for launcher errors.

    Attributes:
        message: Human-readable error message
    """
    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


def describe_os_error(exc: BaseException) -> str:
    """
    Return the system error text for an exception, like strerror(3).

    Args:
        exc: Exception raised by an OS-level call

    Returns:
        Error text without the errno/filename decoration Python adds
    """
    if isinstance(exc, OSError) and exc.strerror:
        return exc.strerror
    return str(exc) or exc.__class__.__name__


def is_interactive(stream: IO[Any] | None) -> bool:
    """
    Check whether a stream is attached to a terminal.

    A missing or closed stream counts as interactive so callers skip it.
    """
    if stream is None:
        return True
    try:
        return stream.isatty()
    except (ValueError, OSError):
        return True


def casefold_name(name: str) -> str:
    """Key used for case-insensitive command name comparison."""
    return name.lower()


def print_progress(text: str) -> None:
    """
    Print a progress line to stdout.

    Names taken from the filesystem or a byte stream may carry undecodable
    bytes as surrogate escapes; they are written back out unchanged instead
    of failing on a strict stdout encoding.
    """
    stream = sys.stdout
    if stream is None:
        return
    buffer = getattr(stream, "buffer", None)
    if buffer is None:
        print(text, file=stream)
        return
    stream.flush()
    buffer.write(os.fsencode(text + "\n"))
    buffer.flush()
