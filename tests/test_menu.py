"""
Tests for menu orchestration (del_launcher/menu.py).

Selectors are small sh scripts so the pipe, signal and exit status handling
run against real processes; launching of selected commands is replaced by a
recorder unless a test is about launch_command() itself.

Target coverage: 85%+
"""

import errno
import signal
import subprocess
from unittest.mock import patch

import pytest

from del_launcher.common import EXIT_FATAL, EXIT_SUCCESS, SIGNAL_EXIT_BASE
from del_launcher.menu import (
    CANCEL_SIGNAL,
    LaunchError,
    MenuOrchestrator,
    MenuState,
    launch_command,
    run_menu,
)


class Recorder:
    """Launcher stand-in that remembers what it was asked to start."""

    def __init__(self, fail_on=None):
        self.commands = []
        self.fail_on = fail_on

    def __call__(self, command):
        self.commands.append(command)
        if self.fail_on is not None and len(self.commands) == self.fail_on:
            raise LaunchError(command, OSError(errno.EAGAIN, "Resource temporarily unavailable"))
        return True


@pytest.fixture
def list_path(tmp_path):
    path = tmp_path / "list"
    path.write_text("firefox\ngimp\nvlc\n")
    return str(path)


def sh(script):
    return ["sh", "-c", script]


class TestLaunchCommand:
    """Tests for launch_command()."""

    def test_starts_without_waiting(self):
        with patch("del_launcher.menu.subprocess.Popen") as mock_popen:
            assert launch_command("firefox") is True
        mock_popen.assert_called_once_with(["firefox"], close_fds=True)
        mock_popen.return_value.wait.assert_not_called()

    def test_real_command(self):
        assert launch_command("true") is True

    def test_exec_failure_is_not_fatal(self, caplog):
        """Test that a program that cannot run is reported and skipped."""
        error = FileNotFoundError(errno.ENOENT, "No such file or directory", "nonexistent")
        with patch("del_launcher.menu.subprocess.Popen", side_effect=error):
            assert launch_command("nonexistent") is False
        assert "nonexistent: No such file or directory" in caplog.text

    def test_fork_failure_is_fatal(self):
        error = BlockingIOError(errno.EAGAIN, "Resource temporarily unavailable")
        with patch("del_launcher.menu.subprocess.Popen", side_effect=error):
            with pytest.raises(LaunchError) as exc_info:
                launch_command("firefox")
        assert exc_info.value.command == "firefox"
        assert "could not fork" in exc_info.value.message

    def test_subprocess_error_is_fatal(self):
        with patch("del_launcher.menu.subprocess.Popen", side_effect=subprocess.SubprocessError("boom")):
            with pytest.raises(LaunchError):
                launch_command("firefox")


class TestMenuOrchestrator:
    """Tests for MenuOrchestrator.run()."""

    def test_empty_argv(self, list_path):
        with pytest.raises(ValueError):
            MenuOrchestrator(list_path, [])

    def test_list_is_selector_stdin(self, list_path):
        """Test that the selector reads the list file and its picks are launched."""
        recorder = Recorder()
        menu = MenuOrchestrator(list_path, ["cat"], launcher=recorder)

        assert menu.run() == EXIT_SUCCESS
        assert recorder.commands == ["firefox", "gimp", "vlc"]
        assert menu.launched == ["firefox", "gimp", "vlc"]
        assert menu.state is MenuState.DONE

    def test_missing_newline(self, list_path, caplog):
        """Test that a final line without newline is reported, not launched."""
        recorder = Recorder()
        menu = MenuOrchestrator(list_path, sh("printf 'alpha\\nbeta\\ngamma'"), launcher=recorder)

        assert menu.run() == EXIT_SUCCESS
        assert recorder.commands == ["alpha", "beta"]
        assert "missing newline after 'gamma'" in caplog.text

    def test_empty_lines_are_skipped(self, list_path):
        recorder = Recorder()
        MenuOrchestrator(list_path, sh("printf '\\nalpha\\n\\n'"), launcher=recorder).run()
        assert recorder.commands == ["alpha"]

    def test_no_selection(self, list_path):
        recorder = Recorder()
        assert MenuOrchestrator(list_path, ["true"], launcher=recorder).run() == EXIT_SUCCESS
        assert recorder.commands == []

    def test_unlaunchable_selection_is_not_counted(self, list_path):
        menu = MenuOrchestrator(list_path, sh("printf 'a\\nb\\n'"), launcher=lambda command: command == "b")
        assert menu.run() == EXIT_SUCCESS
        assert menu.launched == ["b"]

    def test_selector_exit_status(self, list_path, caplog):
        """Test that a selector's non-zero exit status is passed through."""
        menu = MenuOrchestrator(list_path, sh("exit 3"), launcher=Recorder())

        assert menu.run() == 3
        assert menu.state is MenuState.ERROR
        assert "sh died with exit status 3" in caplog.text

    def test_selector_killed_by_signal(self, list_path, caplog):
        menu = MenuOrchestrator(list_path, sh("kill -TERM $$"), launcher=Recorder())

        assert menu.run() == SIGNAL_EXIT_BASE + signal.SIGTERM
        assert f"sh received signal {int(signal.SIGTERM)}" in caplog.text

    def test_fatal_launch_cancels_selector(self, list_path, caplog):
        """Test that a process creation failure stops reading and hangs up the selector."""
        recorder = Recorder(fail_on=2)
        menu = MenuOrchestrator(
            list_path, sh("printf 'one\\ntwo\\nthree\\n'; exec sleep 30"), launcher=recorder
        )

        assert menu.run() == EXIT_FATAL
        assert recorder.commands == ["one", "two"]
        assert menu.launched == ["one"]
        assert menu.kill_signal == CANCEL_SIGNAL
        assert menu.selector.returncode == -CANCEL_SIGNAL
        assert "received signal" not in caplog.text
        assert "could not fork to execute 'two'" in caplog.text

    def test_fatal_error_outranks_exit_status(self, list_path, caplog):
        recorder = Recorder(fail_on=1)
        menu = MenuOrchestrator(list_path, sh("echo one; exit 5"), launcher=recorder)

        assert menu.run() == EXIT_FATAL
        assert "died with exit status" not in caplog.text

    def test_missing_list_file(self, tmp_path, caplog):
        missing = str(tmp_path / "missing")
        menu = MenuOrchestrator(missing, ["cat"], launcher=Recorder())

        assert menu.run() == EXIT_FATAL
        assert menu.state is MenuState.ERROR
        assert f'{missing} missing; was "del -r" run?' in caplog.text

    def test_missing_selector(self, list_path, caplog):
        menu = MenuOrchestrator(list_path, ["del-launcher-no-such-selector"], launcher=Recorder())

        assert menu.run() == EXIT_FATAL
        assert menu.selector is None
        assert "del-launcher-no-such-selector: No such file or directory" in caplog.text

    def test_cancel_before_spawn_does_nothing(self, list_path):
        menu = MenuOrchestrator(list_path, ["cat"], launcher=Recorder())
        menu.cancel()
        assert menu.kill_signal is None

    def test_selector_is_reaped(self, list_path):
        """Test that the spawned selector is streamed from and waited on."""
        menu = MenuOrchestrator(list_path, ["cat"], launcher=Recorder())

        assert menu.run() == EXIT_SUCCESS
        assert menu.selector is not None
        assert menu.selector.returncode == 0
        assert menu.selector.stdout.closed

    def test_wait_failure_is_non_fatal(self, list_path, caplog):
        menu = MenuOrchestrator(list_path, ["true"], launcher=Recorder())
        with patch.object(subprocess.Popen, "wait", side_effect=ChildProcessError(errno.ECHILD, "No child processes")):
            assert menu.run() == 2
        assert "error waiting on true" in caplog.text


class TestRunMenu:
    """Tests for run_menu()."""

    def test_run_menu(self, list_path):
        recorder = Recorder()
        assert run_menu(list_path, ["head", "-n", "1"], launcher=recorder) == EXIT_SUCCESS
        assert recorder.commands == ["firefox"]
