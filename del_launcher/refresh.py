"""
Command list refresh: merge stdin, the existing list and a desktop entry
search, then atomically rewrite the list.
"""

from __future__ import annotations

from typing import IO, Sequence

from .common import EXIT_FATAL, EXIT_SUCCESS, LauncherError, describe_os_error
from .loader import load_commands, load_stdin_commands
from .logging_config import get_logger
from .registry import CommandRegistry
from .scanner import ScanAbortedError, TraversalError, scan_directories


def refresh_command_list(
    list_path: str,
    directories: Sequence[str] | None = None,
    stdin: IO[str] | None = None,
    search_path: str | None = None,
    max_open: int | None = None,
    registry: CommandRegistry | None = None,
) -> int:
    """
    Rebuild the command list file.

    Args:
        list_path: Command list file to update
        directories: Directories to search; "/" when empty
        stdin: Stream with extra commands (defaults to sys.stdin, skipped on a TTY)
        search_path: Overrides $PATH when resolving commands
        max_open: Maximum directory handles held open during the search
        registry: Registry to fill; a new one is created when omitted

    Returns:
        Exit status: 0 on success, 1 on any failure
    """
    logger = get_logger()
    if registry is None:
        registry = CommandRegistry()

    try:
        load_stdin_commands(registry, stdin, search_path)
    except (OSError, UnicodeError, LauncherError) as e:
        logger.error(f"could not load commands from stdin: {describe_os_error(e)}")
        return EXIT_FATAL

    try:
        load_commands(registry, path=list_path, search_path=search_path)
    except FileNotFoundError:
        logger.debug(f"{list_path} does not exist yet; starting with an empty list")
    except (OSError, LauncherError) as e:
        logger.error(f"could not load commands from '{list_path}': {describe_os_error(e)}")
        return EXIT_FATAL

    try:
        scan_directories(registry, directories, search_path=search_path, max_open=max_open)
    except TraversalError as e:
        logger.error(e.message)
        return EXIT_FATAL
    except ScanAbortedError as e:
        # The parser already reported what went wrong
        logger.debug(e.message)
        return EXIT_FATAL

    try:
        count = registry.persist(list_path)
    except LauncherError as e:
        logger.error(e.message)
        return EXIT_FATAL

    logger.debug(f"Command list {list_path} now holds {count} commands")
    return EXIT_SUCCESS
