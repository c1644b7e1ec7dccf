# pronghorn_installer/environment_bootstrap.py
# -*- coding: utf-8 -*-
"""
Creation of the application environment file (.env).

The file is written once, after a short dialog (deployment instance and base
URL) and the generation of an application key in a throwaway container.
An existing file is never touched: no prompts, no key generation.
"""

import logging
import subprocess
from pathlib import Path
from typing import Any, Dict, Optional

from pydantic import HttpUrl, TypeAdapter, ValidationError

from common.command_utils import log_installer, run_command
from common.file_utils import atomic_write_text
from common.orchestrator import StepOutcome
from pronghorn_installer.cli_handler import cli_prompt
from pronghorn_installer.config import ENV_FILE_KEYS, ENV_FILE_NAME
from pronghorn_installer.config_models import AppSettings, DeploymentInstance
from pronghorn_installer.exceptions import InstallerError

module_logger = logging.getLogger(__name__)

# Readable by the container user the compose file bind-mounts .env into
ENV_FILE_MODE = 0o644
DEFAULT_URL_SCHEME = "https://"

_http_url_adapter = TypeAdapter(HttpUrl)


def select_instance(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> DeploymentInstance:
    """
    Offers the configured deployment instances as a numbered menu.

    An empty answer picks the first instance. Anything that is not one of
    the listed numbers also picks the first, with a warning.
    """
    logger_to_use = current_logger if current_logger else module_logger
    instances = app_settings.instances

    print("")
    print("Select the deployment instance:")
    for number, instance in enumerate(instances, start=1):
        print(f"  {number}. {instance.label} ({instance.id})")
    print("")
    answer = cli_prompt("Instance [1]: ", app_settings, logger_to_use)

    if not answer:
        return instances[0]
    if answer.isdigit() and 1 <= int(answer) <= len(instances):
        return instances[int(answer) - 1]

    log_installer(
        f"Invalid choice '{answer}'; using '{instances[0].id}'.",
        "warning",
        logger_to_use,
        app_settings,
    )
    return instances[0]


def normalize_base_url(raw_url: str) -> str:
    """
    Prepends https:// when no scheme is given and validates the result.

    Returns:
        The URL as entered (plus scheme), without a trailing slash.

    Raises:
        ValueError: If the URL is empty or not a valid http(s) URL.
    """
    candidate = raw_url.strip()
    if not candidate:
        raise ValueError("The base URL cannot be empty.")
    if "://" not in candidate:
        candidate = DEFAULT_URL_SCHEME + candidate
    try:
        _http_url_adapter.validate_python(candidate)
    except ValidationError as e:
        raise ValueError(f"'{candidate}' is not a valid URL: {e.errors()[0]['msg']}") from e
    return candidate.rstrip("/")


def prompt_base_url(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> str:
    """
    Asks for the public base URL until a valid one is given.

    Raises:
        InstallerError: If input ends before a valid URL is entered.
    """
    logger_to_use = current_logger if current_logger else module_logger
    while True:
        try:
            answer = cli_prompt(
                "Base URL (e.g. https://pronghorn.example.org): ",
                app_settings,
                logger_to_use,
                raise_on_eof=True,
            )
        except EOFError as e:
            raise InstallerError("No base URL entered (end of input).") from e
        try:
            return normalize_base_url(answer)
        except ValueError as e:
            log_installer(
                f"{e}",
                "warning",
                logger_to_use,
                app_settings,
            )


def generate_app_key(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> str:
    """
    Generates APP_KEY by running the application image once.

    Raises:
        InstallerError: If the container fails or prints nothing.
    """
    logger_to_use = current_logger if current_logger else module_logger
    log_installer("Generating APP_KEY...", "info", logger_to_use, app_settings)
    try:
        result = run_command(
            [
                "docker",
                "run",
                "--rm",
                "--entrypoint",
                "php",
                app_settings.image,
                "artisan",
                "key:generate",
                "--show",
            ],
            app_settings,
            capture_output=True,
            current_logger=logger_to_use,
            quiet=True,
        )
    except subprocess.CalledProcessError as e:
        raise InstallerError("Failed to generate APP_KEY") from e
    app_key = (result.stdout or "").strip()
    if not app_key:
        raise InstallerError("Failed to generate APP_KEY")
    return app_key


def build_env_values(
    app_settings: AppSettings,
    instance: DeploymentInstance,
    base_url: str,
    app_key: str,
) -> Dict[str, str]:
    defaults = app_settings.env_defaults
    return {
        "APP_NAME": defaults.app_name,
        "APP_ENV": defaults.app_env,
        "APP_KEY": app_key,
        "APP_DEBUG": defaults.app_debug,
        "APP_URL": base_url,
        "INSTANCE_ID": instance.id,
        "DB_CONNECTION": defaults.db_connection,
        "DB_DATABASE": defaults.db_database,
        "CACHE_STORE": defaults.cache_store,
        "QUEUE_CONNECTION": defaults.queue_connection,
        "SESSION_DRIVER": defaults.session_driver,
        "SAML2_SP_BASE_URL": base_url,
        "ILS_DRIVER": defaults.ils_driver,
    }


def render_env_file(values: Dict[str, str]) -> str:
    """
    Renders the environment file: one KEY=value line per known key, in a
    fixed order. Keys outside that set are ignored.

    Raises:
        KeyError: If a known key has no value.
    """
    return "".join(f"{key}={values[key]}\n" for key in ENV_FILE_KEYS)


def write_env_file(env_path: Path, values: Dict[str, str]) -> Path:
    """Writes the environment file in one atomic step, mode 0644."""
    return atomic_write_text(env_path, render_env_file(values), mode=ENV_FILE_MODE)


def bootstrap_environment(
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    logger_to_use = current_logger if current_logger else module_logger
    env_path = Path(app_settings.install_dir) / ENV_FILE_NAME

    if env_path.exists():
        log_installer(
            f"Using existing {ENV_FILE_NAME}",
            "success",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    log_installer(
        "Bootstrapping environment...", "info", logger_to_use, app_settings
    )
    instance = select_instance(app_settings, logger_to_use)
    base_url = prompt_base_url(app_settings, logger_to_use)
    app_key = generate_app_key(app_settings, logger_to_use)

    write_env_file(
        env_path, build_env_values(app_settings, instance, base_url, app_key)
    )
    log_installer(
        f"Environment configured for '{instance.id}' at {base_url} with new APP_KEY",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED
