# tests/pronghorn_installer/test_interactive_setup.py
import subprocess

import pytest

from pronghorn_installer.interactive_setup import run_interactive_setup, setup_command


@pytest.fixture(autouse=True)
def no_settle_delay(mocker):
    return mocker.patch("pronghorn_installer.interactive_setup.time.sleep")


def test_setup_command(app_settings):
    assert setup_command(app_settings) == [
        "docker",
        "exec",
        "-it",
        "pronghorn-pronghorn-1",
        "php",
        "artisan",
        "pronghorn:setup",
    ]


def test_runs_directly_with_a_terminal(mocker, app_settings, no_settle_delay):
    mocker.patch(
        "pronghorn_installer.interactive_setup.stdin_is_interactive",
        return_value=True,
    )
    mock_run = mocker.patch(
        "pronghorn_installer.interactive_setup.run_command",
        return_value=subprocess.CompletedProcess([], 4),
    )
    mock_spawn = mocker.patch("pronghorn_installer.interactive_setup.pty.spawn")

    assert run_interactive_setup(app_settings) == 4

    assert mock_run.call_args.args[0] == setup_command(app_settings)
    assert mock_run.call_args.kwargs["check"] is False
    mock_spawn.assert_not_called()
    no_settle_delay.assert_called_once_with(app_settings.settle_delay)


def test_uses_pseudo_terminal_without_a_terminal(mocker, app_settings):
    mocker.patch(
        "pronghorn_installer.interactive_setup.stdin_is_interactive",
        return_value=False,
    )
    mock_run = mocker.patch("pronghorn_installer.interactive_setup.run_command")
    # waitpid status for exit code 2
    mock_spawn = mocker.patch(
        "pronghorn_installer.interactive_setup.pty.spawn", return_value=2 << 8
    )

    assert run_interactive_setup(app_settings) == 2

    mock_spawn.assert_called_once_with(setup_command(app_settings))
    mock_run.assert_not_called()
