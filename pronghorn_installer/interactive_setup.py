# pronghorn_installer/interactive_setup.py
# -*- coding: utf-8 -*-
"""
Runs the application's own interactive setup command inside its container.
"""

import logging
import os
import pty
import subprocess
import time
from typing import List, Optional

from common.command_utils import log_installer, run_command
from common.core_utils import print_header
from pronghorn_installer.config_models import AppSettings
from pronghorn_installer.privileges import stdin_is_interactive

module_logger = logging.getLogger(__name__)


def setup_command(app_settings: AppSettings) -> List[str]:
    return ["docker", "exec", "-it", app_settings.app_container] + list(
        app_settings.setup_command
    )


def run_interactive_setup(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> int:
    """
    Waits the settle delay, then runs the setup command attached to a
    terminal: the real one when stdin is a TTY, otherwise a pseudo-terminal
    allocated with ``pty.spawn``.

    Returns:
        The exit status of the setup command.
    """
    logger_to_use = current_logger if current_logger else module_logger
    print_header("Interactive Configuration")
    time.sleep(app_settings.settle_delay)

    command = setup_command(app_settings)
    if stdin_is_interactive():
        result = run_command(
            command, app_settings, check=False, current_logger=logger_to_use
        )
        return result.returncode

    log_installer(
        f"Running under a pseudo-terminal: {subprocess.list2cmdline(command)}",
        "debug",
        logger_to_use,
        app_settings,
    )
    wait_status = pty.spawn(command)
    return os.waitstatus_to_exitcode(wait_status)
