"""
Shared fixtures for del_launcher tests.
"""

import os
import stat
from pathlib import Path

import pytest

from del_launcher.logging_config import setup_logging


@pytest.fixture(autouse=True)
def _logging():
    """Route del_launcher diagnostics to caplog."""
    setup_logging(verbose=True, propagate=True)
    yield


def make_executable(directory: Path, name: str, mode: int = 0o755) -> Path:
    """Create a trivial shell script."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text("#!/bin/sh\nexit 0\n")
    os.chmod(path, mode)
    return path


def write_entry(directory: Path, name: str, body: str) -> Path:
    """Create a desktop entry file with a [Desktop Entry] header."""
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / name
    path.write_text("[Desktop Entry]\n" + body)
    return path


@pytest.fixture
def bin_dir(tmp_path):
    """Directory used as the only search path component."""
    path = tmp_path / "bin"
    path.mkdir()
    return path


@pytest.fixture
def search_path(bin_dir):
    return str(bin_dir)


@pytest.fixture
def no_exec(tmp_path):
    """A file that exists but cannot be executed."""
    path = tmp_path / "plain"
    path.write_text("data\n")
    os.chmod(path, stat.S_IRUSR | stat.S_IWUSR)
    return path
