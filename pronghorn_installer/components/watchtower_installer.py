# pronghorn_installer/components/watchtower_installer.py
# -*- coding: utf-8 -*-
"""
Deploys the Watchtower container, which keeps the application image current.
"""

import logging
from typing import Any, Dict, List, Optional

from common.command_utils import log_installer, run_command
from common.orchestrator import StepOutcome
from pronghorn_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)

DOCKER_SOCKET = "/var/run/docker.sock"


def container_names(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> List[str]:
    """Names of all containers on the host, running or not."""
    result = run_command(
        ["docker", "ps", "-a", "--format", "{{.Names}}"],
        app_settings,
        capture_output=True,
        check=True,
        current_logger=current_logger,
        quiet=True,
    )
    return [name.strip() for name in result.stdout.splitlines() if name.strip()]


def deploy_watchtower(
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    logger_to_use = current_logger if current_logger else module_logger
    name = app_settings.watchtower_name

    if name in container_names(app_settings, logger_to_use):
        log_installer(
            f"Watchtower container '{name}' already exists.",
            "success",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    log_installer(
        f"Starting Watchtower (polling every {app_settings.watchtower_interval}s)...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_command(
        [
            "docker",
            "run",
            "-d",
            "--name",
            name,
            "--restart",
            "unless-stopped",
            "-v",
            f"{DOCKER_SOCKET}:{DOCKER_SOCKET}",
            app_settings.watchtower_image,
            "--interval",
            str(app_settings.watchtower_interval),
        ],
        app_settings,
        current_logger=logger_to_use,
    )
    log_installer(
        "Watchtower deployed.",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED
