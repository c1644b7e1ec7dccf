# pronghorn_installer/privileges.py
# -*- coding: utf-8 -*-
"""
Re-invocation of the installer under another identity and/or with an
interactive terminal attached.

Everything funnels through relaunch_as(): the running script is first
materialized to a readable file (piped execution has no re-readable source),
then started again with the same interpreter, optionally through
``sudo -u <user>``, with /dev/tty as its stdin when ours is not a terminal.
"""

import logging
import os
import shutil
import sys
import tempfile
from pathlib import Path
from typing import List, Optional

import requests

from common.command_utils import log_installer, run_command
from common.system_utils import get_escalating_user
from pronghorn_installer.cli_handler import cli_prompt_yes_no
from pronghorn_installer.config import REEXEC_ENV_VAR
from pronghorn_installer.config_models import (
    INSTALLER_COMMAND_DEFAULT,
    INSTALLER_PACKAGE_DEFAULT,
    INSTALLER_VENV_DEFAULT,
    AppSettings,
)
from pronghorn_installer.exceptions import InstallerError

module_logger = logging.getLogger(__name__)

CONTROLLING_TTY = "/dev/tty"
# Directory holding the installer packages; the relaunched copy lives elsewhere.
PACKAGE_ROOT = str(Path(__file__).resolve().parent.parent)
DOWNLOAD_TIMEOUT_SECONDS = 30


def stdin_is_interactive() -> bool:
    try:
        return sys.stdin is not None and sys.stdin.isatty()
    except ValueError:
        return False


def controlling_tty_available() -> bool:
    """True when this process has a controlling terminal that can be opened."""
    try:
        with open(CONTROLLING_TTY, "r"):
            return True
    except OSError:
        return False


def _running_script_source() -> Optional[Path]:
    if not sys.argv or sys.argv[0] in ("", "-", "-c"):
        return None
    source = Path(sys.argv[0])
    if source.is_file() and os.access(source, os.R_OK):
        return source
    return None


def materialize_script(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> Path:
    """
    Writes the running installer to a fresh temporary file.

    The script is copied from its own path when it has one; otherwise it is
    downloaded from ``installer_url``. The copy is made readable and
    executable by everyone so that a relaunch under another user can read it.

    Raises:
        InstallerError: If the script cannot be fetched or ends up empty.
    """
    logger_to_use = current_logger if current_logger else module_logger
    fd, tmp_name = tempfile.mkstemp(prefix="pronghorn-installer-", suffix=".py")
    os.close(fd)
    tmp_path = Path(tmp_name)

    try:
        source = _running_script_source()
        if source is not None:
            log_installer(
                f"Copying running installer {source} to {tmp_path}",
                "debug",
                logger_to_use,
                app_settings,
            )
            shutil.copyfile(source, tmp_path)
        else:
            log_installer(
                f"Downloading installer from {app_settings.installer_url}",
                "info",
                logger_to_use,
                app_settings,
            )
            response = requests.get(
                app_settings.installer_url, timeout=DOWNLOAD_TIMEOUT_SECONDS
            )
            response.raise_for_status()
            tmp_path.write_bytes(response.content)
    except (OSError, requests.RequestException) as e:
        tmp_path.unlink(missing_ok=True)
        raise InstallerError(f"Could not materialize the installer: {e}") from e

    if tmp_path.stat().st_size == 0:
        tmp_path.unlink(missing_ok=True)
        raise InstallerError("Materialized installer is empty.")

    tmp_path.chmod(0o755)
    return tmp_path


def relaunch_as(
    user: Optional[str],
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    preserve_tty: bool = True,
    argv: Optional[List[str]] = None,
) -> int:
    """
    Runs the installer again and waits for it.

    Args:
        user: Identity to run as (via sudo). None keeps the current identity.
        app_settings: The application settings.
        current_logger: Logger to use.
        preserve_tty: Attach /dev/tty as the child's stdin when our own stdin
            is not a terminal.
        argv: Arguments for the child. Defaults to ``sys.argv[1:]``.

    Returns:
        int: The child's exit status.
    """
    logger_to_use = current_logger if current_logger else module_logger
    child_args = list(sys.argv[1:] if argv is None else argv)
    script = materialize_script(app_settings, logger_to_use)

    child_env = {REEXEC_ENV_VAR: "1", "PYTHONPATH": PACKAGE_ROOT}
    command: List[str] = []
    if user:
        command += ["sudo", "-u", user, "-H", "env"]
        command += [f"{key}={value}" for key, value in child_env.items()]
    command += [sys.executable, str(script)] + child_args

    tty_handle = None
    try:
        if preserve_tty and not stdin_is_interactive():
            tty_handle = open(CONTROLLING_TTY, "r")
        result = run_command(
            command,
            app_settings,
            check=False,
            current_logger=logger_to_use,
            env=child_env,
            stdin=tty_handle,
        )
        return result.returncode
    finally:
        if tty_handle is not None:
            tty_handle.close()
        script.unlink(missing_ok=True)


def ensure_interactive_stdin(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    argv: Optional[List[str]] = None,
) -> Optional[int]:
    """
    Re-runs the installer with the terminal attached when stdin is a pipe.

    Returns:
        The relaunched child's exit status, or None when the current process
        should carry on (stdin already interactive, already relaunched, or no
        terminal to attach).
    """
    logger_to_use = current_logger if current_logger else module_logger
    if stdin_is_interactive() or os.environ.get(REEXEC_ENV_VAR):
        return None
    if not controlling_tty_available():
        log_installer(
            "Input is not a terminal and no controlling terminal is available; prompts will read from standard input.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return None
    log_installer(
        "Input is piped; re-launching the installer attached to the terminal...",
        "debug",
        logger_to_use,
        app_settings,
    )
    return relaunch_as(None, app_settings, logger_to_use, argv=argv)


def drop_privileges_if_needed(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    argv: Optional[List[str]] = None,
) -> Optional[int]:
    """
    Keeps Phase 2 from running as root.

    Under sudo the installer is relaunched as the invoking user, so that the
    GitHub and registry credentials land in that user's home directory.
    Running as root without sudo asks for explicit confirmation.

    Returns:
        An exit status when this process should stop (the relaunched child's
        status, or 0 when the user declines to continue as root), or None to
        carry on in-process.
    """
    logger_to_use = current_logger if current_logger else module_logger
    if os.geteuid() != 0:
        return None

    sudo_user = get_escalating_user()
    if sudo_user:
        log_installer(
            f"Dropping privileges to '{sudo_user}' for Phase 2...",
            "info",
            logger_to_use,
            app_settings,
        )
        return relaunch_as(sudo_user, app_settings, logger_to_use, argv=argv)

    log_installer(
        "Phase 2 should run as a regular user, not root.",
        "warning",
        logger_to_use,
        app_settings,
    )
    log_installer(
        "This ensures GitHub credentials are stored in your home directory.",
        "warning",
        logger_to_use,
        app_settings,
    )
    if cli_prompt_yes_no(
        "Continue as root anyway?", app_settings, logger_to_use
    ):
        return None
    print(f"Run without sudo: {run_hint(app_settings, elevated=False)}")
    return 0


def run_hint(app_settings: AppSettings, elevated: bool) -> str:
    """The one-line command that (re-)runs the installed installer."""
    if elevated:
        return f"sudo {app_settings.installer_command}"
    return app_settings.installer_command


def bootstrap_commands(
    package: str = INSTALLER_PACKAGE_DEFAULT,
    venv_dir: str = INSTALLER_VENV_DEFAULT,
    command: str = INSTALLER_COMMAND_DEFAULT,
) -> List[str]:
    """
    Shell commands that install the installer on a fresh host.

    The virtual environment lives outside any home directory; the Phase 2
    relaunch imports it as the invoking user.
    """
    return [
        "sudo apt-get install -y git python3-venv",
        f"sudo python3 -m venv {venv_dir}",
        f"sudo {venv_dir}/bin/pip install \"{package}\"",
        f"sudo ln -sf {venv_dir}/bin/{command} /usr/local/bin/{command}",
        f"sudo {command}",
    ]
