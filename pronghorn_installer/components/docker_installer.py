# pronghorn_installer/components/docker_installer.py
# -*- coding: utf-8 -*-
"""
Handles the installation of Docker Engine and the docker group membership of
the invoking user.
"""

import logging
from typing import Any, Dict, Optional

from common.command_utils import (
    command_exists,
    log_installer,
    run_elevated_command,
)
from common.debian.apt_manager import AptManager
from common.orchestrator import StepOutcome
from common.system_utils import (
    get_distribution_codename,
    get_dpkg_architecture,
    user_in_group,
)
from pronghorn_installer.config import (
    DOCKER_GPG_URL,
    DOCKER_GROUP,
    DOCKER_KEYRING_PATH,
    DOCKER_PACKAGES,
    DOCKER_REPO_URL,
    LEGACY_DOCKER_PACKAGES,
)
from pronghorn_installer.config_models import AppSettings
from pronghorn_installer.exceptions import InstallerError

module_logger = logging.getLogger(__name__)


def docker_source_line(arch: str, codename: str) -> str:
    return f"deb [arch={arch} signed-by={DOCKER_KEYRING_PATH}] {DOCKER_REPO_URL} {codename} stable"


def install_docker_engine(
    apt_manager: AptManager,
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    """
    Sets up Docker Engine from Docker's own apt repository.

    Skipped entirely when a ``docker`` executable is already on PATH.
    Otherwise:
    - removes distribution-packaged Docker variants (best-effort),
    - installs Docker's signing key and apt source for this host's
      architecture and release codename,
    - installs the engine, CLI, containerd and the buildx/compose plugins,
    - enables and starts the docker service.

    Raises:
        InstallerError: If the release codename cannot be determined.
        subprocess.CalledProcessError: If any apt or systemctl call fails.
    """
    logger_to_use = current_logger if current_logger else module_logger

    if command_exists("docker"):
        log_installer(
            "Docker is already installed.",
            "success",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    log_installer(
        "Setting up Docker Engine...",
        "info",
        logger_to_use,
        app_settings,
    )
    apt_manager.remove(LEGACY_DOCKER_PACKAGES, app_settings)

    apt_manager.add_gpg_key_from_url(
        DOCKER_GPG_URL, DOCKER_KEYRING_PATH, app_settings
    )
    arch = get_dpkg_architecture(app_settings, logger_to_use)
    codename = get_distribution_codename(app_settings, logger_to_use)
    if not codename:
        raise InstallerError(
            "Could not determine the distribution codename for the Docker repository."
        )
    apt_manager.add_repository(
        "docker", docker_source_line(arch, codename), app_settings
    )

    log_installer(
        f"Installing Docker packages: {', '.join(DOCKER_PACKAGES)}...",
        "info",
        logger_to_use,
        app_settings,
    )
    apt_manager.install(DOCKER_PACKAGES, app_settings)

    run_elevated_command(
        ["systemctl", "enable", "docker"],
        app_settings,
        current_logger=logger_to_use,
    )
    run_elevated_command(
        ["systemctl", "start", "docker"],
        app_settings,
        current_logger=logger_to_use,
    )
    log_installer(
        "Docker Engine installed and running.",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED


def ensure_docker_group_membership(
    username: str,
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    """
    Adds the invoking user to the docker group unless already a member.

    The membership only applies to new login sessions, which is what makes
    the next run land in the re-login phase.
    """
    logger_to_use = current_logger if current_logger else module_logger

    if user_in_group(username, DOCKER_GROUP):
        log_installer(
            f"User {username} is already in the '{DOCKER_GROUP}' group.",
            "success",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    log_installer(
        f"Adding user {username} to '{DOCKER_GROUP}' group...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_elevated_command(
        ["usermod", "-aG", DOCKER_GROUP, username],
        app_settings,
        current_logger=logger_to_use,
    )
    log_installer(
        f"User {username} added to '{DOCKER_GROUP}' group.",
        "success",
        logger_to_use,
        app_settings,
    )
    log_installer(
        "   Log out and back in for this change to take full effect.",
        "warning",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED
