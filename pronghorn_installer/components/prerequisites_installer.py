# pronghorn_installer/components/prerequisites_installer.py
# -*- coding: utf-8 -*-
"""
Steps for the base system: package index refresh, pending upgrades and the
core packages every later step relies on (curl, git, openssl, gnupg, ...).
"""

import logging
from typing import Any, Dict, Optional

from common.command_utils import log_installer
from common.debian.apt_manager import AptManager
from common.orchestrator import StepOutcome
from pronghorn_installer.config import PREREQ_PACKAGES
from pronghorn_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def update_system_packages(
    apt_manager: AptManager,
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    """
    Refreshes the package index and applies pending upgrades.

    The upgrade only runs when 'apt list --upgradable' reports something, so
    a fully patched host reports the step as already satisfied.
    """
    logger_to_use = current_logger if current_logger else module_logger
    log_installer(
        "Checking system packages...",
        "info",
        logger_to_use,
        app_settings,
    )

    apt_manager.update(app_settings)
    pending = apt_manager.upgradable_packages(app_settings)
    if not pending:
        log_installer(
            "System packages are up to date.",
            "success",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    log_installer(
        f"{len(pending)} package(s) can be upgraded.",
        "info",
        logger_to_use,
        app_settings,
    )
    apt_manager.upgrade(app_settings)
    log_installer(
        "System packages upgraded.",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED


def install_prerequisites(
    apt_manager: AptManager,
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    """Installs whichever of the prerequisite packages are missing."""
    logger_to_use = current_logger if current_logger else module_logger

    installed = apt_manager.install(PREREQ_PACKAGES, app_settings)
    if not installed:
        log_installer(
            "Prerequisites already installed.",
            "success",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    log_installer(
        f"Installed prerequisites: {', '.join(installed)}",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED
