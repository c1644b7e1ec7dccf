# pronghorn_installer/stack.py
# -*- coding: utf-8 -*-
"""
Lifecycle of the application's compose stack: health query, (re)creation and
the bounded wait for the healthy state.
"""

import logging
import sys
import time
from typing import Any, Dict, List, Optional

from common.command_utils import log_installer, run_command
from common.orchestrator import StepOutcome
from pronghorn_installer.config import HEALTHY_MARKER
from pronghorn_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def compose_command(app_settings: AppSettings, *args: str) -> List[str]:
    return ["docker", "compose", "-f", str(app_settings.compose_path)] + list(args)


def _compose_output(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger],
    *args: str,
) -> str:
    result = run_command(
        compose_command(app_settings, *args),
        app_settings,
        check=False,
        capture_output=True,
        current_logger=current_logger,
        cwd=str(app_settings.install_dir),
        quiet=True,
    )
    if result.returncode != 0:
        return ""
    return result.stdout or ""


def stack_is_healthy(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> bool:
    """True when ``docker compose ps`` reports a container as healthy."""
    return HEALTHY_MARKER in _compose_output(app_settings, current_logger, "ps")


def stack_has_containers(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> bool:
    return bool(_compose_output(app_settings, current_logger, "ps", "-q").strip())


def wait_for_healthy(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> bool:
    """
    Polls the stack health every ``health_check_interval`` seconds, at most
    ``health_check_attempts`` times.

    Returns:
        True once healthy. False on timeout, after a warning; a slow start is
        not treated as a failure.
    """
    logger_to_use = current_logger if current_logger else module_logger
    log_installer(
        "Waiting for application to become healthy...",
        "info",
        logger_to_use,
        app_settings,
    )

    for attempt in range(1, app_settings.health_check_attempts + 1):
        if stack_is_healthy(app_settings, logger_to_use):
            print("")
            log_installer(
                "Application is healthy!",
                "success",
                logger_to_use,
                app_settings,
            )
            return True
        logger_to_use.debug(
            f"Health check {attempt}/{app_settings.health_check_attempts}: not healthy yet"
        )
        sys.stdout.write(".")
        sys.stdout.flush()
        time.sleep(app_settings.health_check_interval)

    print("")
    log_installer(
        "Health check timed out - container may still be initializing",
        "warning",
        logger_to_use,
        app_settings,
    )
    return False


def start_stack(
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    """
    Ensures the stack is up. A healthy stack is left alone; containers that
    exist without being healthy are torn down before the stack is recreated.
    """
    logger_to_use = current_logger if current_logger else module_logger
    install_dir = str(app_settings.install_dir)

    if stack_is_healthy(app_settings, logger_to_use):
        log_installer(
            "Containers are already running and healthy",
            "success",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    log_installer("Starting containers...", "info", logger_to_use, app_settings)
    if stack_has_containers(app_settings, logger_to_use):
        log_installer(
            "Stopping existing containers...",
            "info",
            logger_to_use,
            app_settings,
        )
        run_command(
            compose_command(app_settings, "down"),
            app_settings,
            current_logger=logger_to_use,
            cwd=install_dir,
        )

    run_command(
        compose_command(app_settings, "up", "-d"),
        app_settings,
        current_logger=logger_to_use,
        cwd=install_dir,
    )
    log_installer(
        "Containers started",
        "success",
        logger_to_use,
        app_settings,
    )

    healthy = wait_for_healthy(app_settings, logger_to_use)
    if context is not None:
        context["stack_healthy"] = healthy
    return StepOutcome.PERFORMED
