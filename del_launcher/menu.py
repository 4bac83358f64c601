"""
Menu orchestration: run the selector over the command list and launch
whatever it prints.

The selector (dmenu by default) reads the command list on stdin and writes
one chosen command per line on stdout. Each selection is started as soon as
its line arrives and is never waited on; once this process exits, launched
programs are reparented to init like any other orphan.
"""

from __future__ import annotations

import errno
import os
import signal
import subprocess
from enum import Enum
from typing import Callable, Sequence

from .common import (
    EXIT_FATAL,
    EXIT_NONFATAL,
    EXIT_SUCCESS,
    SIGNAL_EXIT_BASE,
    LauncherError,
    describe_os_error,
)
from .logging_config import get_logger

# Signal used to stop the selector after a fatal error
CANCEL_SIGNAL = signal.SIGHUP

# errno values meaning the process could not be created at all, as opposed to
# the program failing to exec
SPAWN_FAILURE_ERRNOS = frozenset({errno.EAGAIN, errno.ENOMEM, errno.EMFILE, errno.ENFILE})


class MenuState(Enum):
    INIT = "init"
    SPAWN_SELECTOR = "spawn_selector"
    STREAM_SELECTIONS = "stream_selections"
    FINALIZE_SELECTOR = "finalize_selector"
    DONE = "done"
    ERROR = "error"


class LaunchError(LauncherError):
    """
    Raised when no process could be created for a selected command.

    Attributes:
        command: Selected command
        cause: Underlying error
    """
    def __init__(self, command: str, cause: BaseException):
        self.command = command
        self.cause = cause
        super().__init__(f"could not fork to execute '{command}': {describe_os_error(cause)}")


def launch_command(command: str) -> bool:
    """
    Start a command with no arguments and return immediately.

    The child is deliberately left unwaited; no handle to it is kept.

    Args:
        command: Command name, looked up in $PATH like execlp(3)

    Returns:
        True if the program was started, False if it could not be executed

    Raises:
        LaunchError: If creating the process failed
    """
    try:
        subprocess.Popen([command], close_fds=True)
    except subprocess.SubprocessError as e:
        raise LaunchError(command, e) from e
    except OSError as e:
        if e.errno in SPAWN_FAILURE_ERRNOS:
            raise LaunchError(command, e) from e
        get_logger().error(f"{command}: {describe_os_error(e)}")
        return False
    get_logger().debug(f"Launched {command}")
    return True


class MenuOrchestrator:
    """
    Runs one selector session.

    INIT -> SPAWN_SELECTOR -> STREAM_SELECTIONS -> FINALIZE_SELECTOR -> DONE/ERROR

    Args:
        list_path: Command list fed to the selector's stdin
        argv: Selector program and its arguments
        launcher: Starts one selected command; see launch_command()
    """

    def __init__(
        self,
        list_path: str,
        argv: Sequence[str],
        launcher: Callable[[str], bool] | None = None,
    ):
        if not argv:
            raise ValueError("selector argv must not be empty")
        self.list_path = list_path
        self.argv = list(argv)
        self.launcher = launcher or launch_command
        self.state = MenuState.INIT
        self.launched: list[str] = []
        self.failure = EXIT_SUCCESS
        self.kill_signal: int | None = None
        self.selector: subprocess.Popen[bytes] | None = None

    @property
    def name(self) -> str:
        return self.argv[0]

    def run(self) -> int:
        """
        Run the selector to completion.

        Returns:
            Exit status, in order of precedence: 1 after a fatal error, the
            selector's own non-zero exit status, 128 + N if the selector was
            killed by signal N (other than our own cancellation), 2 if it
            could not be waited on, 0 otherwise
        """
        self.state = MenuState.SPAWN_SELECTOR
        try:
            selector = self._spawn_selector()
        except (OSError, subprocess.SubprocessError):
            self.state = MenuState.ERROR
            return EXIT_FATAL

        self.selector = selector
        self.state = MenuState.STREAM_SELECTIONS
        self._stream_selections(selector)

        if self.failure == EXIT_FATAL:
            self.cancel()

        self.state = MenuState.FINALIZE_SELECTOR
        status = self._finalize(selector)
        self.state = MenuState.DONE if status == EXIT_SUCCESS else MenuState.ERROR
        return status

    def cancel(self) -> None:
        """Send the cancellation signal to the selector and remember doing so."""
        if self.selector is None:
            return
        self.kill_signal = CANCEL_SIGNAL
        get_logger().debug(f"Sending signal {int(CANCEL_SIGNAL)} to {self.name}")
        self.selector.send_signal(CANCEL_SIGNAL)

    def _spawn_selector(self) -> subprocess.Popen[bytes]:
        logger = get_logger()
        try:
            list_file = open(self.list_path, "rb")
        except FileNotFoundError:
            logger.error(f'{self.list_path} missing; was "del -r" run?')
            raise
        except OSError as e:
            logger.error(f"open: {self.list_path}: {describe_os_error(e)}")
            raise

        try:
            return subprocess.Popen(self.argv, stdin=list_file, stdout=subprocess.PIPE)
        except (OSError, subprocess.SubprocessError) as e:
            logger.error(f"{self.name}: {describe_os_error(e)}")
            raise
        finally:
            list_file.close()

    def _stream_selections(self, selector: subprocess.Popen[bytes]) -> None:
        logger = get_logger()

        try:
            with selector.stdout as output:
                for raw in output:
                    line = os.fsdecode(raw)
                    if not line.endswith("\n"):
                        logger.error(f"missing newline after '{line}'")
                        continue

                    command = line[:-1]
                    if not command:
                        continue

                    try:
                        started = self.launcher(command)
                    except LaunchError as e:
                        logger.error(e.message)
                        self.failure = EXIT_FATAL
                        break
                    if started:
                        self.launched.append(command)
        except OSError as e:
            logger.error(f"could not read {self.name} output: {describe_os_error(e)}")
            self.failure = EXIT_FATAL

    def _finalize(self, selector: subprocess.Popen[bytes]) -> int:
        logger = get_logger()

        try:
            returncode = selector.wait()
        except OSError as e:
            logger.error(f"error waiting on {self.name}: {describe_os_error(e)}")
            return self.failure or EXIT_NONFATAL

        if returncode > 0:
            if not self.failure:
                logger.error(f"{self.name} died with exit status {returncode}")
                self.failure = returncode
        elif returncode < 0:
            signum = -returncode
            if signum != self.kill_signal:
                logger.error(f"{self.name} received signal {signum}")
                self.failure = self.failure or SIGNAL_EXIT_BASE + signum

        return self.failure


def run_menu(
    list_path: str,
    argv: Sequence[str],
    launcher: Callable[[str], bool] | None = None,
) -> int:
    """Show the menu for list_path using the selector argv and return an exit status."""
    return MenuOrchestrator(list_path, argv, launcher=launcher).run()
