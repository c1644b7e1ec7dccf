# pronghorn_installer/components/gh_cli_installer.py
# -*- coding: utf-8 -*-
"""
Handles the installation of the GitHub CLI from GitHub's apt repository.
"""

import logging
from typing import Any, Dict, Optional

from common.command_utils import command_exists, log_installer
from common.debian.apt_manager import AptManager
from common.orchestrator import StepOutcome
from common.system_utils import get_dpkg_architecture
from pronghorn_installer.config import (
    GH_CLI_GPG_URL,
    GH_CLI_KEYRING_PATH,
    GH_CLI_REPO_URL,
)
from pronghorn_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def install_github_cli(
    apt_manager: AptManager,
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    """Installs ``gh`` unless it is already on PATH."""
    logger_to_use = current_logger if current_logger else module_logger

    if command_exists("gh"):
        log_installer(
            "GitHub CLI is already installed.",
            "success",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    log_installer(
        "Setting up GitHub CLI...",
        "info",
        logger_to_use,
        app_settings,
    )
    apt_manager.add_gpg_key_from_url(
        GH_CLI_GPG_URL, GH_CLI_KEYRING_PATH, app_settings
    )
    arch = get_dpkg_architecture(app_settings, logger_to_use)
    apt_manager.add_repository(
        "github-cli",
        f"deb [arch={arch} signed-by={GH_CLI_KEYRING_PATH}] {GH_CLI_REPO_URL} stable main",
        app_settings,
    )
    apt_manager.install("gh", app_settings)
    log_installer(
        "GitHub CLI installed.",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED
