# pronghorn_installer/app_setup.py
# -*- coding: utf-8 -*-
"""
Phase 2: application setup.

Runs as the regular user who owns the installation directory. Authenticates
against GitHub and the container registry, lays out the installation
directory, starts the stack and hands over to the application's interactive
setup command.
"""

import logging
import os
from pathlib import Path
from typing import List, Optional

from common.command_utils import log_installer
from common.core_utils import GREEN, highlight, print_header
from common.orchestrator import Orchestrator
from pronghorn_installer.artifacts import (
    create_storage_directories,
    download_compose_file,
    ensure_database_file,
)
from pronghorn_installer.certificates import (
    SAML_PAIR,
    TLS_PAIR,
    ensure_certificate_pair,
)
from pronghorn_installer.config_models import AppSettings
from pronghorn_installer.environment_bootstrap import bootstrap_environment
from pronghorn_installer.exceptions import PreconditionError
from pronghorn_installer.interactive_setup import run_interactive_setup
from pronghorn_installer.privileges import drop_privileges_if_needed, run_hint
from pronghorn_installer.registry_auth import setup_registry_auth
from pronghorn_installer.stack import start_stack

module_logger = logging.getLogger(__name__)


def enter_install_dir(app_settings: AppSettings) -> Path:
    """
    Makes the installation directory the working directory.

    Raises:
        PreconditionError: If it is missing or not accessible to this user.
    """
    install_dir = Path(app_settings.install_dir)
    if not install_dir.is_dir() or not os.access(
        install_dir, os.R_OK | os.W_OK | os.X_OK
    ):
        raise PreconditionError(
            f"Cannot access {install_dir}. Run Phase 1 first: "
            f"{run_hint(app_settings, elevated=True)}"
        )
    os.chdir(install_dir)
    return install_dir


def build_setup_orchestrator(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> Orchestrator:
    logger_to_use = current_logger if current_logger else module_logger
    step_kwargs = {"current_logger": logger_to_use}

    orchestrator = Orchestrator(app_settings, logger_to_use)
    orchestrator.add_task(
        "registry_auth", setup_registry_auth, kwargs=dict(step_kwargs)
    )
    orchestrator.add_task(
        "compose_file", download_compose_file, kwargs=dict(step_kwargs)
    )
    orchestrator.add_task(
        "storage_directories",
        create_storage_directories,
        kwargs=dict(step_kwargs),
    )
    orchestrator.add_task(
        "database_file", ensure_database_file, kwargs=dict(step_kwargs)
    )
    orchestrator.add_task(
        "environment", bootstrap_environment, kwargs=dict(step_kwargs)
    )
    orchestrator.add_task(
        "tls_certificates",
        ensure_certificate_pair,
        args=[TLS_PAIR],
        kwargs=dict(step_kwargs),
    )
    orchestrator.add_task(
        "saml_certificates",
        ensure_certificate_pair,
        args=[SAML_PAIR],
        kwargs=dict(step_kwargs),
    )
    orchestrator.add_task("stack", start_stack, kwargs=dict(step_kwargs))
    return orchestrator


def phase_setup(
    app_settings: AppSettings,
    current_logger: Optional[logging.Logger] = None,
    argv: Optional[List[str]] = None,
) -> int:
    """
    Runs Phase 2 end to end.

    Returns:
        The interactive setup command's exit status, or the relaunched
        child's status when privileges were dropped, or 0 when the user
        declined to continue as root.
    """
    logger_to_use = current_logger if current_logger else module_logger
    print_header("Phase 2: Pronghorn Setup")

    relaunch_status = drop_privileges_if_needed(
        app_settings, logger_to_use, argv=argv
    )
    if relaunch_status is not None:
        return relaunch_status

    install_dir = enter_install_dir(app_settings)
    logger_to_use.debug(f"Working directory: {install_dir}")

    build_setup_orchestrator(app_settings, logger_to_use).run()

    status = run_interactive_setup(app_settings, logger_to_use)
    if status != 0:
        log_installer(
            f"Interactive setup exited with status {status}.",
            "error",
            logger_to_use,
            app_settings,
        )
        return status

    print("")
    print("==============================================")
    print(highlight("Pronghorn Installation Complete!", GREEN))
    print("==============================================")
    print("")
    return status
