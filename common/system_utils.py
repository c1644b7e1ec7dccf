# common/system_utils.py
# -*- coding: utf-8 -*-
"""
System-level utility functions for the installer.

This module includes functions for reading the OS identification file,
determining the distribution codename and package architecture, and
resolving the user who invoked the installer.
"""

import getpass
import grp
import logging
import os
import pwd
import re
import shlex
import subprocess
from pathlib import Path
from typing import Dict, Optional

from common.command_utils import log_installer, run_command
from pronghorn_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

OS_RELEASE_PATH = Path("/etc/os-release")
VERSION_PATTERN = re.compile(r"\d+\.\d+\.\d+")


def read_os_release(path: Path = OS_RELEASE_PATH) -> Dict[str, str]:
    """
    Parses an os-release file into a dictionary.

    Lines are shell-style ``KEY=value`` assignments; quoted values are
    unquoted. Blank lines and comments are ignored.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    values: Dict[str, str] = {}
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#") or "=" not in line:
            continue
        key, _, raw_value = line.partition("=")
        try:
            parsed = shlex.split(raw_value)
        except ValueError:
            parsed = [raw_value.strip("\"'")]
        values[key.strip()] = parsed[0] if parsed else ""
    return values


def get_distribution_codename(
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> Optional[str]:
    """
    Get the distribution codename (e.g., 'noble', 'jammy') via lsb_release.
    """
    logger_to_use = current_logger if current_logger else module_logger

    try:
        result: subprocess.CompletedProcess = run_command(
            ["lsb_release", "-cs"],
            app_settings,
            capture_output=True,
            check=True,
            current_logger=logger_to_use,
        )
        stdout_val: Optional[str] = result.stdout
        if stdout_val is not None and stdout_val.strip():
            return stdout_val.strip()
        return None
    except FileNotFoundError:
        log_installer(
            "lsb_release command not found. Cannot determine codename.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return None
    except subprocess.CalledProcessError:
        # run_command has already logged the failure.
        return None


def get_dpkg_architecture(
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """Returns the dpkg architecture string (e.g. 'amd64')."""
    result = run_command(
        ["dpkg", "--print-architecture"],
        app_settings,
        capture_output=True,
        check=True,
        current_logger=current_logger,
    )
    return result.stdout.strip()


def get_invoking_user() -> str:
    """
    Returns the user who invoked the installer: SUDO_USER when escalated via
    sudo, else USER, else the login name of the current process.
    """
    return (
        os.environ.get("SUDO_USER")
        or os.environ.get("USER")
        or getpass.getuser()
    )


def get_escalating_user() -> Optional[str]:
    """
    Returns the unprivileged user behind a sudo escalation, or None when
    there is none (not escalated, or escalated from root).
    """
    sudo_user = os.environ.get("SUDO_USER")
    if sudo_user and sudo_user != "root":
        return sudo_user
    return None


def user_in_group(username: str, group_name: str) -> bool:
    """
    True when the user is a member of the group, either as a supplementary
    member or through their primary group.
    """
    try:
        group = grp.getgrnam(group_name)
    except KeyError:
        return False
    if username in group.gr_mem:
        return True
    try:
        return pwd.getpwnam(username).pw_gid == group.gr_gid
    except KeyError:
        return False


def parse_version(output: Optional[str]) -> str:
    """Extracts the first x.y.z version number from command output."""
    if not output:
        return "unknown"
    match = VERSION_PATTERN.search(output)
    return match.group(0) if match else "unknown"


def get_tool_version(
    command: list,
    app_settings: Optional[AppSettings],
    current_logger: Optional[logging.Logger] = None,
) -> str:
    """Runs a ``--version`` style command and returns the parsed version."""
    try:
        result = run_command(
            command,
            app_settings,
            check=False,
            capture_output=True,
            current_logger=current_logger,
            quiet=True,
        )
    except FileNotFoundError:
        return "unknown"
    return parse_version(result.stdout)
