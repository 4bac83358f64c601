"""
Recursive search for desktop entries.

The walk is equivalent to ``find DIRS -xdev -name '*.desktop'``: it is
depth-first and follows symbolic links, but skips anything on a different
device than the root it started from. The number of simultaneously open
directory handles stays below the process file limit.
"""

from __future__ import annotations

import os
import stat
from dataclasses import dataclass, field
from typing import Callable, Iterable, Iterator, Sequence

from .common import LauncherError, describe_os_error
from .desktop_entry import ParseResult, ParseStatus, parse_desktop_entry
from .logging_config import get_logger
from .registry import CommandRegistry

DEFAULT_ROOTS = ("/",)

# stdin, stdout and stderr plus the descriptor entry being parsed
RESERVED_DESCRIPTORS = 4


class TraversalError(LauncherError):
    """Raised when a tree cannot be walked."""

    def __init__(self, root: str, cause: OSError):
        self.root = root
        self.cause = cause
        super().__init__(f"unable to walk '{root}': {describe_os_error(cause)}")


class ScanAbortedError(LauncherError):
    """Raised when parsing a file failed in a way that makes continuing unsafe."""

    def __init__(self, result: ParseResult):
        self.result = result
        super().__init__(f"scan aborted while processing '{result.path}'")


@dataclass
class ScanSummary:
    """Counters collected over a scan."""
    directories: int = 0
    files: int = 0
    statuses: dict[ParseStatus, int] = field(default_factory=dict)

    def record(self, result: ParseResult) -> None:
        self.files += 1
        self.statuses[result.status] = self.statuses.get(result.status, 0) + 1

    @property
    def added(self) -> int:
        return self.statuses.get(ParseStatus.ADDED, 0)


def max_open_directories() -> int:
    """Number of directory handles the walk may hold open at once."""
    try:
        limit = os.sysconf("SC_OPEN_MAX")
    except (ValueError, OSError):
        limit = -1
    if limit <= 0:
        # POSIX guarantees at least 20
        limit = 20
    return max(1, limit - RESERVED_DESCRIPTORS)


class _Listing:
    """One directory being read; either a live scandir handle or buffered entries."""

    def __init__(self, path: str):
        self.path = path
        self._handle = os.scandir(path)
        self._buffered: Iterator[os.DirEntry[str]] | None = None

    @property
    def is_open(self) -> bool:
        return self._handle is not None

    def next_entry(self) -> os.DirEntry[str] | None:
        if self._handle is not None:
            entry = next(self._handle, None)
            if entry is None:
                self.close()
            return entry
        if self._buffered is not None:
            return next(self._buffered, None)
        return None

    def drain(self) -> None:
        """Read the remaining entries into memory and release the handle."""
        if self._handle is not None:
            self._buffered = iter(list(self._handle))
            self.close()

    def close(self) -> None:
        if self._handle is not None:
            self._handle.close()
            self._handle = None


class DirectoryScanner:
    """
    Walks directory trees and feeds every regular file to a parser.

    Args:
        registry: Registry that accepted commands are added to
        search_path: Overrides $PATH when resolving commands
        max_open: Maximum simultaneously open directory handles
        parser: Per-file callback; defaults to parse_desktop_entry
    """

    def __init__(
        self,
        registry: CommandRegistry,
        search_path: str | None = None,
        max_open: int | None = None,
        parser: Callable[[str, CommandRegistry, str | None], ParseResult] | None = None,
    ):
        self.registry = registry
        self.search_path = search_path
        self.max_open = max_open if max_open is not None else max_open_directories()
        self.parser = parser or parse_desktop_entry
        self.summary = ScanSummary()

    def scan(self, roots: Sequence[str] | None = None) -> ScanSummary:
        """
        Walk each root in order.

        Raises:
            TraversalError: If a root cannot be examined or a directory read fails
            ScanAbortedError: If the parser reports a fatal result
        """
        for root in roots or DEFAULT_ROOTS:
            self.walk(root)
        return self.summary

    def walk(self, root: str) -> None:
        """Walk a single tree without crossing filesystem boundaries."""
        logger = get_logger()
        try:
            root_stat = os.stat(root)
        except OSError as e:
            raise TraversalError(root, e) from e

        if not stat.S_ISDIR(root_stat.st_mode):
            if stat.S_ISREG(root_stat.st_mode):
                self._visit_file(root)
            return

        device = root_stat.st_dev
        visited = {(root_stat.st_dev, root_stat.st_ino)}
        stack: list[_Listing] = []

        try:
            stack.append(_Listing(root))
        except OSError as e:
            raise TraversalError(root, e) from e
        self.summary.directories += 1

        try:
            while stack:
                try:
                    entry = stack[-1].next_entry()
                except OSError as e:
                    raise TraversalError(root, e) from e
                if entry is None:
                    stack.pop().close()
                    continue

                try:
                    entry_stat = entry.stat(follow_symlinks=True)
                except OSError as e:
                    logger.debug(f"Skipping {entry.path}: {describe_os_error(e)}")
                    continue

                if entry_stat.st_dev != device:
                    continue

                if stat.S_ISDIR(entry_stat.st_mode):
                    key = (entry_stat.st_dev, entry_stat.st_ino)
                    if key in visited:
                        continue
                    visited.add(key)
                    self._make_room(root, stack)
                    try:
                        stack.append(_Listing(entry.path))
                    except OSError as e:
                        logger.debug(f"Cannot read directory {entry.path}: {describe_os_error(e)}")
                        continue
                    self.summary.directories += 1
                elif stat.S_ISREG(entry_stat.st_mode):
                    self._visit_file(entry.path)
        finally:
            for listing in stack:
                listing.close()

    def _make_room(self, root: str, stack: list[_Listing]) -> None:
        """Release the oldest open handle if another one would exceed the limit."""
        open_listings = [listing for listing in stack if listing.is_open]
        if len(open_listings) >= self.max_open:
            try:
                open_listings[0].drain()
            except OSError as e:
                raise TraversalError(root, e) from e

    def _visit_file(self, path: str) -> None:
        result = self.parser(path, self.registry, self.search_path)
        self.summary.record(result)
        if result.fatal:
            raise ScanAbortedError(result)


def scan_directories(
    registry: CommandRegistry,
    directories: Iterable[str] | None = None,
    search_path: str | None = None,
    max_open: int | None = None,
) -> ScanSummary:
    """
    Search directories for desktop entries and add their commands to registry.

    Args:
        registry: Registry receiving commands
        directories: Roots to search; "/" when empty or None
        search_path: Overrides $PATH when resolving commands
        max_open: Maximum simultaneously open directory handles

    Returns:
        ScanSummary for the whole search
    """
    scanner = DirectoryScanner(registry, search_path=search_path, max_open=max_open)
    summary = scanner.scan(list(directories or ()))
    get_logger().debug(
        f"Scanned {summary.directories} directories and {summary.files} files; "
        f"{summary.added} new commands"
    )
    return summary
