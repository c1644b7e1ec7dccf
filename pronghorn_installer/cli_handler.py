# pronghorn_installer/cli_handler.py
# -*- coding: utf-8 -*-
"""
Handles interactive prompts on the terminal.
"""

import getpass
import logging
from typing import Optional

from common.command_utils import log_installer
from pronghorn_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


def cli_prompt(
    prompt_message: str,
    app_settings: AppSettings,
    current_logger_instance: Optional[logging.Logger] = None,
    raise_on_eof: bool = False,
) -> str:
    """
    Reads one line of input, stripped. End-of-file is treated as an empty
    answer and logged as a warning, unless ``raise_on_eof`` is set, in which
    case the EOFError propagates. Prompts that loop until they get a valid
    answer set it.
    """
    logger_to_use = (
        current_logger_instance if current_logger_instance else module_logger
    )
    try:
        return input(prompt_message).strip()
    except EOFError:
        if raise_on_eof:
            raise
        log_installer(
            f"No user input (EOF) for prompt: '{prompt_message.strip()}'",
            "warning",
            logger_to_use,
            app_settings,
        )
        return ""


def cli_prompt_yes_no(
    prompt_message: str,
    app_settings: AppSettings,
    current_logger_instance: Optional[logging.Logger] = None,
) -> bool:
    """
    Asks a yes/no question that defaults to "No".

    Returns:
        bool: True only if the user answers "y" or "yes" (any case).
    """
    answer = cli_prompt(
        f"{prompt_message} [y/N]: ", app_settings, current_logger_instance
    )
    return answer.lower() in ("y", "yes")


def cli_prompt_secret(
    prompt_message: str,
    app_settings: AppSettings,
    current_logger_instance: Optional[logging.Logger] = None,
) -> str:
    """Reads a secret without echoing it to the terminal."""
    logger_to_use = (
        current_logger_instance if current_logger_instance else module_logger
    )
    try:
        return getpass.getpass(prompt_message).strip()
    except EOFError:
        log_installer(
            "No user input (EOF) for secret prompt.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return ""
