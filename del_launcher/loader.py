"""
Loading newline-separated command lists.

Used for both the previously persisted list file and an optional list piped
in on stdin, so programs without desktop entries can be offered too.
"""

from __future__ import annotations

import io
import sys
from typing import IO

from .common import is_interactive, print_progress
from .pathsearch import resolves
from .registry import CommandRegistry


def _load_lines(registry: CommandRegistry, stream: IO[str], search_path: str | None) -> int:
    added = 0
    for line in stream:
        entry = line[:-1] if line.endswith("\n") else line
        if not entry or registry.contains(entry):
            continue
        if resolves(entry, search_path):
            registry.add(entry)
            added += 1
        else:
            print_progress(f"- {entry}")
    return added


def load_commands(
    registry: CommandRegistry,
    path: str | None = None,
    stream: IO[str] | None = None,
    search_path: str | None = None,
) -> int:
    """
    Add every executable command listed in a file or stream to the registry.

    Exactly one of path and stream must be given. A stream passed by the
    caller is not closed. Names already in the registry are skipped; commands
    that cannot be found are printed with a "- " prefix and dropped.

    Args:
        registry: Registry receiving the commands
        path: File containing one command per line
        stream: Open text stream containing one command per line
        search_path: Overrides $PATH when resolving commands

    Returns:
        Number of commands added

    Raises:
        ValueError: If both or neither of path and stream are given
        OSError: If the file cannot be opened or read
        RegistryGrowthError: If the registry cannot grow
    """
    if (path is None) == (stream is None):
        raise ValueError("exactly one of path or stream must be given")

    if stream is not None:
        return _load_lines(registry, stream, search_path)

    with open(path, "r", encoding="utf-8", errors="surrogateescape") as f:
        return _load_lines(registry, f, search_path)


def load_stdin_commands(
    registry: CommandRegistry,
    stream: IO[str] | None = None,
    search_path: str | None = None,
) -> int:
    """
    Load commands piped in on stdin.

    Nothing is read when stdin is missing, closed or a terminal. The process's
    own stdin is decoded as UTF-8 with undecodable bytes preserved, whatever
    the locale says.
    """
    if stream is not None:
        if is_interactive(stream):
            return 0
        return load_commands(registry, stream=stream, search_path=search_path)

    stdin = sys.stdin
    if is_interactive(stdin):
        return 0
    buffer = getattr(stdin, "buffer", None)
    if buffer is None:
        return load_commands(registry, stream=stdin, search_path=search_path)

    reader = io.TextIOWrapper(buffer, encoding="utf-8", errors="surrogateescape")
    try:
        return load_commands(registry, stream=reader, search_path=search_path)
    finally:
        # Leave sys.stdin's buffer open
        reader.detach()
