"""
Freedesktop desktop entry parsing.

Only the handful of keys needed to decide whether an entry names a
graphical command are understood: NoDisplay, Terminal and Exec from the
"[Desktop Entry]" group.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from enum import Enum

from .common import DESKTOP_ENTRY_EXTENSION, casefold_name, print_progress
from .logging_config import get_logger
from .pathsearch import resolves
from .registry import CommandRegistry, RegistryGrowthError

SECTION_HEADER = "[desktop entry]\n"

# Keys must start the line; whitespace around "=" is optional
HIDDEN_KEY_RE = re.compile(r"(?:NoDisplay|Terminal)\s*=\s*(\S+)")
EXEC_KEY_RE = re.compile(r"Exec\s*=\s*(\S.*)", re.DOTALL)


class ParseStatus(Enum):
    """Outcome of parsing one file."""
    ADDED = "added"
    IGNORED = "ignored"            # not a desktop entry
    DISQUALIFIED = "disqualified"  # NoDisplay=true or Terminal=true
    NO_COMMAND = "no_command"
    DUPLICATE = "duplicate"
    UNRESOLVED = "unresolved"
    UNREADABLE = "unreadable"
    FATAL = "fatal"


@dataclass(frozen=True)
class DesktopEntry:
    """
    Fields of a desktop entry relevant to building the command list.

    Attributes:
        exec_line: Value of the last Exec key seen, or "" if none
        no_display: NoDisplay=true was found
        terminal: Terminal=true was found
        source_path: File the entry was read from
    """
    exec_line: str
    no_display: bool = False
    terminal: bool = False
    source_path: str = ""

    @property
    def hidden(self) -> bool:
        return self.no_display or self.terminal


@dataclass(frozen=True)
class ParseResult:
    """Result of handing one file to parse_desktop_entry()."""
    status: ParseStatus
    path: str
    command: str | None = None

    @property
    def fatal(self) -> bool:
        return self.status is ParseStatus.FATAL


def is_desktop_entry_path(path: str) -> bool:
    return path.endswith(DESKTOP_ENTRY_EXTENSION)


def _basename(token: str) -> str:
    # basename(3) semantics: trailing slashes do not produce an empty name
    stripped = token.rstrip("/")
    return os.path.basename(stripped) if stripped else token[:1]


def read_desktop_entry(path: str) -> DesktopEntry:
    """
    Read the interesting keys from a desktop entry file.

    Lines before a line reading exactly "[Desktop Entry]" (any case) are
    ignored. Once inside the group, every following line is considered;
    later groups are not told apart. Parsing stops at the first
    NoDisplay=true or Terminal=true.

    Args:
        path: Desktop entry file

    Returns:
        DesktopEntry record

    Raises:
        OSError: If the file cannot be opened or read
    """
    exec_line = ""
    inside_desktop_entry = False

    with open(path, "r", encoding="utf-8", errors="surrogateescape", newline="") as f:
        for line in f:
            if not inside_desktop_entry:
                inside_desktop_entry = line.lower() == SECTION_HEADER
                continue

            hidden = HIDDEN_KEY_RE.match(line)
            if hidden:
                if hidden.group(1).lower() == "true":
                    return DesktopEntry(
                        exec_line="",
                        no_display=line.startswith("NoDisplay"),
                        terminal=line.startswith("Terminal"),
                        source_path=path,
                    )
                continue

            command = EXEC_KEY_RE.match(line)
            if command:
                exec_line = command.group(1).strip()

    return DesktopEntry(exec_line=exec_line, source_path=path)


def command_from_exec(exec_line: str) -> str | None:
    """
    Extract the command token from an Exec value.

    When the command is env(1), the first later token that is neither a
    variable assignment nor an option is used instead, so
    "env FOO=bar -i mycmd --flag" yields "mycmd".

    Returns:
        Command token (possibly a path), or None if there is none
    """
    tokens = exec_line.split()
    if not tokens:
        return None

    command = tokens[0]
    if _basename(command) != "env":
        return command

    for token in tokens[1:]:
        if "=" not in token[1:] and not token.startswith("-"):
            return token
    return None


def parse_desktop_entry(
    path: str,
    registry: CommandRegistry,
    search_path: str | None = None,
) -> ParseResult:
    """
    Parse one file and add the command it names to the registry.

    The lowercase form of the command's base name is preferred when it can be
    executed; the original spelling is used only if it differs and resolves.

    Args:
        path: File to examine; files without the .desktop suffix are ignored
        registry: Registry receiving the command
        search_path: Overrides $PATH when resolving commands

    Returns:
        ParseResult; only FATAL should stop a traversal
    """
    if not is_desktop_entry_path(path):
        return ParseResult(ParseStatus.IGNORED, path)

    try:
        entry = read_desktop_entry(path)
    except OSError as e:
        get_logger().debug(f"Skipping {path}: {e.strerror}")
        return ParseResult(ParseStatus.UNREADABLE, path)
    except MemoryError:
        get_logger().error(f"could not allocate memory while reading '{path}'")
        return ParseResult(ParseStatus.FATAL, path)

    if entry.hidden:
        return ParseResult(ParseStatus.DISQUALIFIED, path)

    command = command_from_exec(entry.exec_line)
    if not command:
        return ParseResult(ParseStatus.NO_COMMAND, path)

    basename = _basename(command)
    if registry.contains(basename):
        return ParseResult(ParseStatus.DUPLICATE, path, basename)

    try:
        lowercase_basename = casefold_name(basename)
    except MemoryError:
        get_logger().error("could not allocate memory for command name")
        return ParseResult(ParseStatus.FATAL, path, basename)

    if resolves(lowercase_basename, search_path):
        name = lowercase_basename
    elif lowercase_basename != basename and resolves(basename, search_path):
        name = basename
    else:
        return ParseResult(ParseStatus.UNRESOLVED, path, basename)

    print_progress(f"+ {name} ({path})")
    try:
        registry.add(name)
    except RegistryGrowthError as e:
        get_logger().error(e.message)
        return ParseResult(ParseStatus.FATAL, path, name)

    return ParseResult(ParseStatus.ADDED, path, name)
