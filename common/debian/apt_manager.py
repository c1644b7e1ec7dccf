# common/debian/apt_manager.py
# -*- coding: utf-8 -*-
import logging
import os
import subprocess
from typing import List, Optional, Union

from common.command_utils import (
    command_exists,
    run_command,
    run_elevated_command,
)
from common.file_utils import atomic_write_text
from pronghorn_installer.config_models import AppSettings

APT_ENV = {"DEBIAN_FRONTEND": "noninteractive"}
CONFOLD_OPTION = ["-o", "Dpkg::Options::=--force-confold"]
SOURCES_DIR = "/etc/apt/sources.list.d"


class AptManager:
    """
    A centralized manager for apt packages and one-line apt sources, driven
    through the command-line tools. All apt calls run non-interactively and
    keep existing configuration files on upgrade.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        """
        Initializes the AptManager.
        Args:
            logger: An optional logging object.
        """
        self.logger = logger or logging.getLogger(__name__)
        if not command_exists("apt-get"):
            self.logger.critical(
                "'apt-get' command not found. This manager cannot function."
            )
            raise FileNotFoundError(
                "'apt-get' not found. Is this a Debian-based system?"
            )

    def update(self, app_settings: AppSettings) -> None:
        """Refreshes the package index with 'apt-get update'."""
        self.logger.info("Updating apt package lists...")
        run_elevated_command(
            ["apt-get", "update", "-qq"],
            app_settings,
            current_logger=self.logger,
            env=APT_ENV,
        )

    def upgradable_packages(self, app_settings: AppSettings) -> List[str]:
        """
        Lists the packages with pending upgrades, as reported by
        'apt list --upgradable'.
        """
        result = run_command(
            ["apt", "list", "--upgradable"],
            app_settings,
            capture_output=True,
            check=True,
            current_logger=self.logger,
            env=APT_ENV,
            quiet=True,
        )
        packages = []
        for line in result.stdout.splitlines():
            if "/" not in line or line.startswith("Listing"):
                continue
            packages.append(line.split("/", 1)[0])
        return packages

    def upgrade(self, app_settings: AppSettings) -> None:
        """Upgrades installed packages, keeping local configuration files."""
        self.logger.info("Upgrading installed packages...")
        run_elevated_command(
            ["apt-get", "upgrade", "-y", "-qq"] + CONFOLD_OPTION,
            app_settings,
            current_logger=self.logger,
            env=APT_ENV,
        )

    def missing_packages(
        self, packages: List[str], app_settings: AppSettings
    ) -> List[str]:
        """Returns the subset of ``packages`` that dpkg does not report as installed."""
        missing = []
        for pkg_name in packages:
            try:
                result = run_command(
                    ["dpkg-query", "-W", "-f=${db:Status-Status}", pkg_name],
                    app_settings,
                    capture_output=True,
                    check=True,
                    current_logger=self.logger,
                    quiet=True,
                )
                if result.stdout.strip() != "installed":
                    missing.append(pkg_name)
            except subprocess.CalledProcessError:
                missing.append(pkg_name)
        return missing

    def install(
        self,
        packages: Union[List[str], str],
        app_settings: AppSettings,
        update_first: bool = False,
    ) -> List[str]:
        """
        Installs whichever of the packages are missing.

        Args:
            packages: A single package name or a list of package names.
            app_settings: The application settings.
            update_first: Whether to update the package lists before installing.

        Returns:
            The packages that were installed; empty when all were present.

        Raises:
            subprocess.CalledProcessError: If apt-get fails.
        """
        if not isinstance(packages, list):
            packages = [packages]

        packages_to_install = self.missing_packages(packages, app_settings)
        if not packages_to_install:
            self.logger.debug("All requested packages are already installed.")
            return []

        if update_first:
            self.update(app_settings)

        self.logger.info(
            f"Installing packages: {', '.join(packages_to_install)}"
        )
        run_elevated_command(
            ["apt-get", "install", "-y", "-qq"]
            + CONFOLD_OPTION
            + packages_to_install,
            app_settings,
            current_logger=self.logger,
            env=APT_ENV,
        )
        return packages_to_install

    def remove(
        self, packages: Union[List[str], str], app_settings: AppSettings
    ) -> bool:
        """
        Removes packages on a best-effort basis.

        Returns:
            True if apt-get succeeded, False otherwise.
        """
        if not isinstance(packages, list):
            packages = [packages]
        result = run_elevated_command(
            ["apt-get", "remove", "-y", "-qq"] + packages,
            app_settings,
            check=False,
            capture_output=True,
            current_logger=self.logger,
            env=APT_ENV,
        )
        if result.returncode != 0:
            self.logger.debug(
                f"apt-get remove exited {result.returncode}; ignoring."
            )
            return False
        return True

    def add_gpg_key_from_url(
        self, key_url: str, keyring_path: str, app_settings: AppSettings
    ) -> None:
        """
        Downloads a signing key from a URL into a world-readable keyring file.

        Raises:
            subprocess.CalledProcessError: If the download fails.
        """
        self.logger.info(f"Adding GPG key from {key_url} to {keyring_path}")

        keyring_dir = os.path.dirname(keyring_path)
        if not os.path.isdir(keyring_dir):
            run_elevated_command(
                ["install", "-m", "0755", "-d", keyring_dir],
                app_settings,
                current_logger=self.logger,
            )

        run_elevated_command(
            ["curl", "-fsSL", key_url, "-o", keyring_path],
            app_settings,
            current_logger=self.logger,
        )
        run_elevated_command(
            ["chmod", "a+r", keyring_path],
            app_settings,
            current_logger=self.logger,
        )

    def add_repository(
        self,
        repo_name: str,
        source_line: str,
        app_settings: AppSettings,
        update_after: bool = True,
    ) -> str:
        """
        Adds an apt repository as a one-line ``<repo_name>.list`` source file.

        Returns:
            The path of the written source file.
        """
        repo_file_path = os.path.join(SOURCES_DIR, f"{repo_name}.list")
        self.logger.info(f"Adding repository '{repo_name}' at {repo_file_path}")
        atomic_write_text(repo_file_path, source_line + "\n", mode=0o644)
        if update_after:
            self.update(app_settings)
        return repo_file_path
