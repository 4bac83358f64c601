"""
Command line entry point.

Usage:
    del-launcher -r [DIRECTORY...]      # Rebuild the command list
    del-launcher [SELECTOR [ARG...]]    # Pick a command with dmenu (or SELECTOR)
"""

from __future__ import annotations

import argparse
import sys
from typing import Sequence

from .common import EXIT_FATAL
from .config import ConfigError, load_config
from .logging_config import get_logger, setup_logging
from .menu import run_menu
from .refresh import refresh_command_list

DESCRIPTION = """\
DEL searches for Freedesktop Desktop Entries, generates a list of graphical
commands and uses dmenu as a front-end so the user can select a command to
execute. The first time DEL is executed, it should be invoked with "-r" to
generate the application list.

When "-r" is not specified, dmenu is launched with the command list fed into
standard input. Trailing command line arguments can be used to pass flags to
dmenu or use a different menu altogether:

    Set the background color of selected text to red:
    $ %(prog)s -- -sb "#ff0000"

    Use rofi in dmenu mode instead of dmenu:
    $ %(prog)s rofi -dmenu
"""

EPILOG = """\
Refreshing:
  Trailing arguments are folders to search; "/" is searched when none are
  given. The search does not cross filesystem boundaries, like
  "find $ARGUMENTS -xdev -name '*.desktop'", so folders on other devices must
  be listed explicitly. A newline-separated list of programs can be piped in
  on stdin to include programs without desktop entries; programs not found in
  $PATH are skipped.

Environment:
  DEL_LIST_FILE   command list path (default: $HOME/.del)
  DEL_MENU        default selector command (default: dmenu)
  DEL_LOG_LEVEL   log level (default: INFO)
  DEL_LOG_FILE    also write diagnostics to this file

Exit statuses:
  0        Success.
  1        Fatal error encountered.
  2        Non-fatal error encountered.
  > 128    The menu was killed by signal N, where N is the status minus 128.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="del",
        description=DESCRIPTION,
        epilog=EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-f",
        dest="list_path",
        metavar="PATH",
        help="Use PATH as the command list instead of $HOME/.del",
    )
    parser.add_argument(
        "-r",
        dest="refresh",
        action="store_true",
        help="Search for desktop entries to refresh the command list",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose output",
    )
    parser.add_argument(
        "--log-file",
        metavar="FILE",
        help="Also write diagnostics to FILE",
    )
    parser.add_argument(
        "arguments",
        nargs=argparse.REMAINDER,
        help="Folders to search with -r, otherwise the menu command and its arguments",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(list_path=args.list_path, log_file=args.log_file)
    except ConfigError as e:
        setup_logging()
        get_logger().error(e.message)
        return EXIT_FATAL

    setup_logging(level=config.log_level, log_file=config.log_file, verbose=args.verbose)
    get_logger().debug(f"Using command list {config.list_path} ({config.source['list_path']})")

    arguments = list(args.arguments)
    if args.refresh:
        if arguments and arguments[0] == "--":
            arguments = arguments[1:]
        return refresh_command_list(config.list_path, arguments)

    return run_menu(config.list_path, config.menu_argv(arguments))


def run() -> None:
    """Console script wrapper."""
    try:
        sys.exit(main())
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        sys.exit(130)
