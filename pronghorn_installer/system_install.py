# pronghorn_installer/system_install.py
# -*- coding: utf-8 -*-
"""
Phase 1: system dependencies.

Runs as root. Installs system packages, Docker Engine, the GitHub CLI and
Watchtower, adds the invoking user to the docker group and prepares the
installation directory. Every step checks before it acts, so an interrupted
or repeated run converges on the same host state.
"""

import logging
import os
import pwd
from pathlib import Path
from typing import Any, Dict, Optional

from common.command_utils import log_installer
from common.core_utils import CYAN, GREEN, YELLOW, highlight, print_header
from common.debian.apt_manager import APT_ENV, AptManager
from common.orchestrator import Orchestrator, StepOutcome
from common.system_utils import (
    OS_RELEASE_PATH,
    get_invoking_user,
    get_tool_version,
    read_os_release,
)
from pronghorn_installer.components.docker_installer import (
    ensure_docker_group_membership,
    install_docker_engine,
)
from pronghorn_installer.components.gh_cli_installer import install_github_cli
from pronghorn_installer.components.prerequisites_installer import (
    install_prerequisites,
    update_system_packages,
)
from pronghorn_installer.components.watchtower_installer import (
    deploy_watchtower,
)
from pronghorn_installer.config_models import AppSettings
from pronghorn_installer.exceptions import PreconditionError
from pronghorn_installer.privileges import run_hint

module_logger = logging.getLogger(__name__)


def check_preconditions(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    os_release_path: Path = OS_RELEASE_PATH,
) -> Dict[str, str]:
    """
    Verifies that Phase 1 can run on this host.

    Returns:
        The parsed os-release fields.

    Raises:
        PreconditionError: If not running as root, if the OS cannot be
            identified, or if it is not the supported distribution.
    """
    logger_to_use = current_logger if current_logger else module_logger

    if os.geteuid() != 0:
        raise PreconditionError(
            "Phase 1 requires root privileges. "
            f"Run with: {run_hint(app_settings, elevated=True)}"
        )

    if not Path(os_release_path).is_file():
        raise PreconditionError(
            f"Cannot detect OS. {os_release_path} not found."
        )
    os_release = read_os_release(Path(os_release_path))
    os_id = os_release.get("ID", "")
    if os_id != app_settings.supported_os_id:
        raise PreconditionError(
            f"This installer is designed for {app_settings.supported_os_id.capitalize()}. "
            f"Detected: {os_id or 'unknown'}"
        )

    logger_to_use.debug(f"os-release: {os_release}")
    return os_release


def create_install_directory(
    username: str,
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    """Creates the installation directory, owned by the invoking user."""
    logger_to_use = current_logger if current_logger else module_logger
    install_dir = Path(app_settings.install_dir)

    if install_dir.is_dir():
        log_installer(
            f"{install_dir} already exists.",
            "success",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    log_installer(
        f"Creating {install_dir}...", "info", logger_to_use, app_settings
    )
    install_dir.mkdir(parents=True, exist_ok=True)
    user_record = pwd.getpwnam(username)
    os.chown(install_dir, user_record.pw_uid, user_record.pw_gid)
    log_installer(
        f"Directory {install_dir} created for {username}.",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED


def print_install_summary(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    docker_version = get_tool_version(
        ["docker", "--version"], app_settings, current_logger
    )
    compose_version = get_tool_version(
        ["docker", "compose", "version"], app_settings, current_logger
    )
    gh_version = get_tool_version(
        ["gh", "--version"], app_settings, current_logger
    )

    print("")
    print("==============================================")
    print(highlight("Phase 1 Complete!", GREEN))
    print("==============================================")
    print("")
    print("Installed:")
    print(f"  - Docker Engine {docker_version}")
    print(f"  - Docker Compose {compose_version}")
    print(f"  - GitHub CLI {gh_version}")
    print("  - Watchtower (auto-update daemon)")
    print("")
    print(
        highlight(
            "IMPORTANT: Log out and back in for docker group to take effect.",
            YELLOW,
        )
    )
    print("")
    print("Then run the installer again (without sudo):")
    print(f"  {highlight(run_hint(app_settings, elevated=False), CYAN)}")
    print("")


def phase_install(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
) -> int:
    """
    Runs Phase 1 end to end.

    Returns:
        0 on success. Failures propagate as InstallerError.
    """
    logger_to_use = current_logger if current_logger else module_logger
    print_header("Phase 1: Installing System Dependencies")

    os_release = check_preconditions(app_settings, logger_to_use)
    username = get_invoking_user()
    if username == "root":
        log_installer(
            "Running as root directly. Consider using a regular user with sudo.",
            "warning",
            logger_to_use,
            app_settings,
        )
    log_installer(
        f"Installing on {os_release.get('NAME', 'Ubuntu')} {os_release.get('VERSION_ID', '')} for user: {username}",
        "info",
        logger_to_use,
        app_settings,
    )

    # Inherited by every child, including the ones not started by AptManager.
    os.environ.update(APT_ENV)
    apt_manager = AptManager(logger=logger_to_use)
    step_kwargs = {"current_logger": logger_to_use}

    orchestrator = Orchestrator(app_settings, logger_to_use)
    orchestrator.add_task(
        "system_packages",
        update_system_packages,
        kwargs=dict(step_kwargs, apt_manager=apt_manager),
    )
    orchestrator.add_task(
        "prerequisites",
        install_prerequisites,
        kwargs=dict(step_kwargs, apt_manager=apt_manager),
    )
    orchestrator.add_task(
        "docker_engine",
        install_docker_engine,
        kwargs=dict(step_kwargs, apt_manager=apt_manager),
    )
    orchestrator.add_task(
        "docker_group",
        ensure_docker_group_membership,
        kwargs=dict(step_kwargs, username=username),
    )
    orchestrator.add_task(
        "github_cli",
        install_github_cli,
        kwargs=dict(step_kwargs, apt_manager=apt_manager),
    )
    orchestrator.add_task(
        "watchtower", deploy_watchtower, kwargs=dict(step_kwargs)
    )
    orchestrator.add_task(
        "install_directory",
        create_install_directory,
        kwargs=dict(step_kwargs, username=username),
    )
    orchestrator.run()

    print_install_summary(app_settings, logger_to_use)
    return 0
