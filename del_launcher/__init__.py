"""
Desktop Entry Launcher - a dmenu front-end for Freedesktop desktop entries.

Core Modules:
- Discovery: executable lookup, desktop entry parsing, directory search
- Command list: in-memory registry, list loading, atomic persistence
- Menu: selector orchestration and fire-and-forget command launching
"""

__version__ = "1.0.0"

from .common import (
    EXIT_FATAL,
    EXIT_NONFATAL,
    EXIT_SUCCESS,
    SIGNAL_EXIT_BASE,
    LauncherError,
)
from .pathsearch import PathTooLongError, can_execute, command_path, resolves
from .registry import CommandRegistry, NoCommandsError, PersistError, RegistryGrowthError
from .desktop_entry import (
    DesktopEntry,
    ParseResult,
    ParseStatus,
    command_from_exec,
    parse_desktop_entry,
    read_desktop_entry,
)
from .scanner import (
    DirectoryScanner,
    ScanAbortedError,
    ScanSummary,
    TraversalError,
    scan_directories,
)
from .loader import load_commands, load_stdin_commands
from .refresh import refresh_command_list
from .menu import LaunchError, MenuOrchestrator, MenuState, launch_command, run_menu
from .config import Config, ConfigError, load_config
from .logging_config import setup_logging, get_logger

__all__ = [
    "__version__",
    "EXIT_SUCCESS",
    "EXIT_FATAL",
    "EXIT_NONFATAL",
    "SIGNAL_EXIT_BASE",
    "LauncherError",
    "PathTooLongError",
    "can_execute",
    "command_path",
    "resolves",
    "CommandRegistry",
    "NoCommandsError",
    "PersistError",
    "RegistryGrowthError",
    "DesktopEntry",
    "ParseResult",
    "ParseStatus",
    "command_from_exec",
    "parse_desktop_entry",
    "read_desktop_entry",
    "DirectoryScanner",
    "ScanAbortedError",
    "ScanSummary",
    "TraversalError",
    "scan_directories",
    "load_commands",
    "load_stdin_commands",
    "refresh_command_list",
    "LaunchError",
    "MenuOrchestrator",
    "MenuState",
    "launch_command",
    "run_menu",
    "Config",
    "ConfigError",
    "load_config",
    "setup_logging",
    "get_logger",
]
