# pronghorn_installer/registry_auth.py
# -*- coding: utf-8 -*-
"""
GitHub and container registry authentication.

Two independent states are checked: whether Docker can already pull the
application image, and whether the GitHub CLI holds a valid session. Only the
missing one is remediated. The Docker login reuses the GitHub CLI token, so a
single GitHub sign-in covers both.
"""

import json
import logging
import subprocess
from typing import Any, Dict, Optional

from common.command_utils import command_succeeds, log_installer, run_command
from common.orchestrator import StepOutcome
from pronghorn_installer.cli_handler import cli_prompt, cli_prompt_secret
from pronghorn_installer.config import (
    GH_HOSTNAME,
    GH_PACKAGE_SCOPES,
    GH_TOKEN_URL,
)
from pronghorn_installer.config_models import AppSettings
from pronghorn_installer.exceptions import InstallerError

module_logger = logging.getLogger(__name__)

AUTH_MODE_TOKEN = "2"


def registry_can_pull(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> bool:
    """True when ``docker pull`` of the application image succeeds."""
    return command_succeeds(
        ["docker", "pull", app_settings.image], app_settings, current_logger
    )


def gh_session_valid(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> bool:
    return command_succeeds(
        ["gh", "auth", "status"], app_settings, current_logger
    )


def gh_login(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> None:
    """
    Signs the GitHub CLI in, either through the browser device flow or with a
    personal access token typed (without echo) by the user.

    Raises:
        InstallerError: If the token prompt receives an empty token.
        subprocess.CalledProcessError: If ``gh auth login`` fails.
    """
    logger_to_use = current_logger if current_logger else module_logger

    print("")
    print("GitHub CLI needs authentication.")
    print("")
    print("Options:")
    print("  1. Browser authentication (recommended)")
    print("  2. Personal Access Token (for headless servers)")
    print("")
    choice = cli_prompt("Choose [1/2]: ", app_settings, logger_to_use)

    if choice == AUTH_MODE_TOKEN:
        print("")
        print(f"Create a token at: {GH_TOKEN_URL}")
        print(f"Required scopes: {GH_PACKAGE_SCOPES.replace(',', ', ')}")
        print("")
        token = cli_prompt_secret("Enter token: ", app_settings, logger_to_use)
        if not token:
            raise InstallerError("No GitHub token entered.")
        run_command(
            ["gh", "auth", "login", "--with-token"],
            app_settings,
            cmd_input=token + "\n",
            current_logger=logger_to_use,
        )
        log_installer(
            "Authenticated with personal access token.",
            "success",
            logger_to_use,
            app_settings,
        )
        return

    log_installer(
        "Opening browser for GitHub authentication...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_command(
        ["gh", "auth", "login", "-h", GH_HOSTNAME, "-p", "https", "-w"],
        app_settings,
        current_logger=logger_to_use,
    )


def widen_gh_scopes(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> bool:
    """
    Adds the package read/write scopes to the GitHub CLI session.

    Best-effort: a failure is logged and reported as False.
    """
    logger_to_use = current_logger if current_logger else module_logger
    log_installer(
        "Adding package scopes...", "info", logger_to_use, app_settings
    )
    result = run_command(
        ["gh", "auth", "refresh", "-h", GH_HOSTNAME, "-s", GH_PACKAGE_SCOPES],
        app_settings,
        check=False,
        current_logger=logger_to_use,
    )
    if result.returncode != 0:
        log_installer(
            f"Could not add package scopes (exit {result.returncode}); continuing.",
            "warning",
            logger_to_use,
            app_settings,
        )
        return False
    return True


def _git_config_value(
    key: str, app_settings: AppSettings, current_logger: logging.Logger
) -> str:
    result = run_command(
        ["git", "config", "--global", key],
        app_settings,
        check=False,
        capture_output=True,
        current_logger=current_logger,
        quiet=True,
    )
    return result.stdout.strip() if result.returncode == 0 else ""


def noreply_email(account: Dict[str, Any]) -> str:
    return f"{account['id']}+{account['login']}@users.noreply.github.com"


def ensure_git_identity(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> StepOutcome:
    """
    Sets the global git user.name and user.email from the GitHub account
    when either is missing.

    The name falls back to the login and the email to the account's
    no-reply address. Failing to read the account is only a warning.
    """
    logger_to_use = current_logger if current_logger else module_logger

    name = _git_config_value("user.name", app_settings, logger_to_use)
    email = _git_config_value("user.email", app_settings, logger_to_use)
    if name and email:
        logger_to_use.debug(f"git identity already set: {name} <{email}>")
        return StepOutcome.ALREADY_SATISFIED

    try:
        result = run_command(
            ["gh", "api", "user"],
            app_settings,
            capture_output=True,
            current_logger=logger_to_use,
            quiet=True,
        )
        account = json.loads(result.stdout)
        login = account["login"]
    except (subprocess.CalledProcessError, ValueError, KeyError, TypeError) as e:
        log_installer(
            f"Could not read the GitHub account to set the git identity: {e}",
            "warning",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    if not name:
        name = account.get("name") or login
        run_command(
            ["git", "config", "--global", "user.name", name],
            app_settings,
            current_logger=logger_to_use,
        )
    if not email:
        email = account.get("email") or noreply_email(account)
        run_command(
            ["git", "config", "--global", "user.email", email],
            app_settings,
            current_logger=logger_to_use,
        )
    log_installer(
        f"git identity set to {name} <{email}>",
        "success",
        logger_to_use,
        app_settings,
    )
    return StepOutcome.PERFORMED


def docker_login_with_gh(
    app_settings: AppSettings, current_logger: Optional[logging.Logger] = None
) -> str:
    """
    Logs Docker into the registry with the GitHub CLI token, then pulls the
    application image.

    Returns:
        The GitHub login used for the registry.

    Raises:
        InstallerError: If the GitHub login cannot be determined.
        subprocess.CalledProcessError: If the registry login or pull fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    log_installer(
        f"Authenticating Docker with {app_settings.registry_host}...",
        "info",
        logger_to_use,
        app_settings,
    )

    try:
        login_result = run_command(
            ["gh", "api", "user", "--jq", ".login"],
            app_settings,
            capture_output=True,
            current_logger=logger_to_use,
        )
    except subprocess.CalledProcessError as e:
        raise InstallerError("Could not determine GitHub username") from e
    gh_user = login_result.stdout.strip()
    if not gh_user:
        raise InstallerError("Could not determine GitHub username")

    token_result = run_command(
        ["gh", "auth", "token"],
        app_settings,
        capture_output=True,
        current_logger=logger_to_use,
        quiet=True,
    )
    run_command(
        [
            "docker",
            "login",
            app_settings.registry_host,
            "-u",
            gh_user,
            "--password-stdin",
        ],
        app_settings,
        cmd_input=token_result.stdout.strip() + "\n",
        capture_output=True,
        current_logger=logger_to_use,
    )
    log_installer(
        f"Docker authenticated as {gh_user}",
        "success",
        logger_to_use,
        app_settings,
    )

    log_installer(
        f"Pulling {app_settings.image}...",
        "info",
        logger_to_use,
        app_settings,
    )
    run_command(
        ["docker", "pull", app_settings.image],
        app_settings,
        current_logger=logger_to_use,
    )
    log_installer(
        "Image pulled",
        "success",
        logger_to_use,
        app_settings,
    )
    return gh_user


def setup_registry_auth(
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    """
    Brings both authentication states up, remediating only what is missing.
    """
    logger_to_use = current_logger if current_logger else module_logger
    log_installer(
        "Setting up GitHub Container Registry authentication...",
        "info",
        logger_to_use,
        app_settings,
    )

    can_pull = registry_can_pull(app_settings, logger_to_use)
    session_valid = gh_session_valid(app_settings, logger_to_use)
    performed = False

    if not session_valid:
        gh_login(app_settings, logger_to_use)
        widen_gh_scopes(app_settings, logger_to_use)
        performed = True

    if ensure_git_identity(app_settings, logger_to_use) == StepOutcome.PERFORMED:
        performed = True

    if can_pull:
        log_installer(
            f"Already authenticated with {app_settings.registry_host}",
            "success",
            logger_to_use,
            app_settings,
        )
    else:
        docker_login_with_gh(app_settings, logger_to_use)
        performed = True

    return StepOutcome.PERFORMED if performed else StepOutcome.ALREADY_SATISFIED
