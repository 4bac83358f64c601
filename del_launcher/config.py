"""
Runtime configuration.

There is no configuration file: settings come from command line options,
then environment variables, then built-in defaults.

Environment variables:
    DEL_LIST_FILE: Command list path (default: $HOME/.del)
    DEL_MENU: Default selector command, split like a shell would (default: dmenu)
    DEL_LOG_LEVEL: Log level (default: INFO)
    DEL_LOG_FILE: Optional log file
"""

from __future__ import annotations

import os
import shlex
from dataclasses import dataclass, field
from typing import Mapping, Sequence

from .common import DEFAULT_COMMAND_LIST_BASENAME, DEFAULT_MENU_COMMAND, LauncherError

VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ConfigError(LauncherError):
    """Raised when settings are missing or invalid."""


@dataclass(frozen=True)
class Config:
    """
    Settings for one invocation.

    Attributes:
        list_path: Command list file
        menu_command: Selector argv used when none is given on the command line
        log_level: Console log level
        log_file: Optional log file path
    """
    list_path: str
    menu_command: tuple[str, ...] = (DEFAULT_MENU_COMMAND,)
    log_level: str = "INFO"
    log_file: str | None = None
    source: dict[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        """Validate config after initialization."""
        if not self.list_path:
            raise ConfigError("command list path must not be empty")

        if not self.menu_command or not self.menu_command[0]:
            raise ConfigError("menu command must not be empty")

        if self.log_level.upper() not in VALID_LOG_LEVELS:
            raise ConfigError(
                f"Invalid log level: {self.log_level}. "
                f"Must be one of: {', '.join(sorted(VALID_LOG_LEVELS))}"
            )

    def menu_argv(self, arguments: Sequence[str] = ()) -> list[str]:
        """
        Build the selector argv from trailing command line arguments.

        When no arguments are given, or the first one looks like an option,
        they are passed to the default selector, so both ``del -- -sb red``
        and ``del rofi -dmenu`` work.
        """
        arguments = list(arguments)
        if arguments and arguments[0] == "--":
            arguments = arguments[1:]
        if not arguments or arguments[0].startswith("-"):
            return [*self.menu_command, *arguments]
        return arguments


def default_list_path(environ: Mapping[str, str]) -> str:
    """
    Return $HOME/.del.

    Raises:
        ConfigError: If HOME is unset
    """
    home = environ.get("HOME")
    if not home:
        raise ConfigError('HOME is unset; use "-f" to specify list path')
    return os.path.join(home, DEFAULT_COMMAND_LIST_BASENAME)


def load_config(
    environ: Mapping[str, str] | None = None,
    list_path: str | None = None,
    log_file: str | None = None,
) -> Config:
    """
    Merge explicit values, environment variables and defaults.

    Args:
        environ: Environment mapping (default: os.environ)
        list_path: Command list path given on the command line
        log_file: Log file given on the command line

    Returns:
        Validated Config

    Raises:
        ConfigError: If no list path can be determined or a value is invalid
    """
    if environ is None:
        environ = os.environ

    source: dict[str, str] = {}

    if list_path:
        source["list_path"] = "argument"
    elif environ.get("DEL_LIST_FILE"):
        list_path = environ["DEL_LIST_FILE"]
        source["list_path"] = "DEL_LIST_FILE"
    else:
        list_path = default_list_path(environ)
        source["list_path"] = "HOME"

    menu_command: tuple[str, ...] = (DEFAULT_MENU_COMMAND,)
    if environ.get("DEL_MENU"):
        try:
            menu_command = tuple(shlex.split(environ["DEL_MENU"]))
        except ValueError as e:
            raise ConfigError(f"Invalid DEL_MENU: {e}") from e
        source["menu_command"] = "DEL_MENU"

    if log_file:
        source["log_file"] = "argument"
    elif environ.get("DEL_LOG_FILE"):
        log_file = environ["DEL_LOG_FILE"]
        source["log_file"] = "DEL_LOG_FILE"

    return Config(
        list_path=list_path,
        menu_command=menu_command,
        log_level=environ.get("DEL_LOG_LEVEL", "INFO").upper(),
        log_file=log_file,
        source=source,
    )
