# pronghorn_installer/artifacts.py
# -*- coding: utf-8 -*-
"""
Files and directories laid out under the installation directory: the compose
descriptor fetched from the private repository, the storage tree and the
SQLite database file.
"""

import base64
import binascii
import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional

from common.command_utils import log_installer, run_command
from common.file_utils import ensure_directories, is_non_empty_file, remove_files
from common.orchestrator import StepOutcome
from pronghorn_installer.config import DATABASE_FILE, STORAGE_DIRECTORIES
from pronghorn_installer.config_models import AppSettings
from pronghorn_installer.exceptions import InstallerError

module_logger = logging.getLogger(__name__)


def download_compose_file(
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    """
    Fetches the compose descriptor through the GitHub contents API.

    The API returns the file base64-encoded. An empty or undecodable result
    leaves no file behind and fails the run.

    Raises:
        InstallerError: If the download yields no usable content.
    """
    logger_to_use = current_logger if current_logger else module_logger
    compose_path = app_settings.compose_path
    compose_file = app_settings.compose_file

    if is_non_empty_file(compose_path):
        log_installer(
            f"{compose_file} exists",
            "success",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    log_installer(
        f"Fetching {compose_file} from {app_settings.github_repo}...",
        "info",
        logger_to_use,
        app_settings,
    )
    try:
        result = run_command(
            [
                "gh",
                "api",
                f"repos/{app_settings.github_repo}/contents/{compose_file}",
                "--jq",
                ".content",
            ],
            app_settings,
            capture_output=True,
            current_logger=logger_to_use,
        )
        content = base64.b64decode(result.stdout or "")
    except (subprocess.CalledProcessError, binascii.Error) as e:
        remove_files([compose_path], app_settings, logger_to_use)
        raise InstallerError(f"Failed to download {compose_file}: {e}") from e

    compose_path.write_bytes(content)
    if not is_non_empty_file(compose_path):
        remove_files([compose_path], app_settings, logger_to_use)
        raise InstallerError(
            f"Downloaded {compose_file} is empty. Check access to {app_settings.github_repo}."
        )

    log_installer(
        f"Downloaded {compose_file}",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED


def create_storage_directories(
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    logger_to_use = current_logger if current_logger else module_logger
    created = ensure_directories(
        app_settings.install_dir,
        STORAGE_DIRECTORIES,
        app_settings,
        logger_to_use,
    )
    log_installer(
        "Directories created" if created else "Directories exist",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED if created else StepOutcome.ALREADY_SATISFIED


def ensure_database_file(
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    """Creates the empty SQLite database file the application migrates into."""
    logger_to_use = current_logger if current_logger else module_logger
    database_path = Path(app_settings.install_dir) / DATABASE_FILE
    if database_path.exists():
        logger_to_use.debug(f"{database_path} exists")
        return StepOutcome.ALREADY_SATISFIED

    database_path.parent.mkdir(parents=True, exist_ok=True)
    database_path.touch()
    log_installer(
        f"Created {DATABASE_FILE}",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED
