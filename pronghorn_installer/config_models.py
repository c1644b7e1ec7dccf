# pronghorn_installer/config_models.py
# -*- coding: utf-8 -*-
"""
Pydantic models for installer configuration.

This module defines the structured settings for the installer, including
defaults, type annotations, and descriptions. Every field can be overridden
through a PRONGHORN_-prefixed environment variable or the YAML config file.
"""

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

INSTALL_DIR_DEFAULT: str = "/opt/pronghorn"
GITHUB_REPO_DEFAULT: str = "pronghorn-registration/pronghorn"
REGISTRY_HOST_DEFAULT: str = "ghcr.io"
IMAGE_DEFAULT: str = "ghcr.io/pronghorn-registration/pronghorn:latest"
INSTALLER_URL_DEFAULT: str = "https://raw.githubusercontent.com/pronghorn-registration/installer/main/install_pronghorn.py"
INSTALLER_COMMAND_DEFAULT: str = "pronghorn-install"
INSTALLER_PACKAGE_DEFAULT: str = "git+https://github.com/pronghorn-registration/installer.git"
INSTALLER_VENV_DEFAULT: str = "/opt/pronghorn-installer"
COMPOSE_FILE_DEFAULT: str = "docker-compose.prod.yml"
APP_CONTAINER_DEFAULT: str = "pronghorn-pronghorn-1"
SETUP_COMMAND_DEFAULT: List[str] = ["php", "artisan", "pronghorn:setup"]
WATCHTOWER_NAME_DEFAULT: str = "watchtower"
WATCHTOWER_IMAGE_DEFAULT: str = "nickfedor/watchtower"
WATCHTOWER_INTERVAL_DEFAULT: int = 300

class DeploymentInstance(BaseModel):
    """A deployment target offered in the configuration dialog."""

    id: str = Field(description="Value written to INSTANCE_ID.")
    label: str = Field(description="Human-readable name shown in the menu.")


INSTANCES_DEFAULT: List[DeploymentInstance] = [
    DeploymentInstance(id="default", label="Default (production)"),
    DeploymentInstance(id="staging", label="Staging"),
    DeploymentInstance(id="training", label="Training / sandbox"),
]


class EnvDefaults(BaseModel):
    """Fixed values written into a freshly generated environment file."""

    app_name: str = Field(default="Pronghorn", description="APP_NAME.")
    app_env: str = Field(default="production", description="APP_ENV.")
    app_debug: str = Field(default="false", description="APP_DEBUG.")
    db_connection: str = Field(default="sqlite", description="DB_CONNECTION.")
    db_database: str = Field(
        default="/var/www/html/database/database.sqlite",
        description="DB_DATABASE, as seen from inside the container.",
    )
    cache_store: str = Field(default="file", description="CACHE_STORE.")
    queue_connection: str = Field(default="database", description="QUEUE_CONNECTION.")
    session_driver: str = Field(default="file", description="SESSION_DRIVER.")
    ils_driver: str = Field(default="symphony", description="ILS_DRIVER.")


class AppSettings(BaseSettings):
    """Main installer settings."""

    model_config = SettingsConfigDict(
        env_prefix="PRONGHORN_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    install_dir: Path = Field(default=Path(INSTALL_DIR_DEFAULT),
                              description="Directory that owns all generated artifacts.")
    github_repo: str = Field(default=GITHUB_REPO_DEFAULT,
                             description="Private repository holding the compose descriptor.")
    registry_host: str = Field(default=REGISTRY_HOST_DEFAULT,
                               description="Container registry that serves the image.")
    image: str = Field(default=IMAGE_DEFAULT, description="Application image reference.")
    installer_url: str = Field(default=INSTALLER_URL_DEFAULT,
                               description="Public URL of the entry script, downloaded when the running "
                                           "script has no readable source.")
    installer_command: str = Field(default=INSTALLER_COMMAND_DEFAULT,
                                   description="Console script shown in re-run instructions.")
    compose_file: str = Field(default=COMPOSE_FILE_DEFAULT,
                              description="Compose descriptor file name inside install_dir.")
    app_container: str = Field(default=APP_CONTAINER_DEFAULT,
                               description="Name of the running application container.")
    setup_command: List[str] = Field(default_factory=lambda: list(SETUP_COMMAND_DEFAULT),
                                     description="Interactive setup command run inside the container.")
    supported_os_id: str = Field(default="ubuntu",
                                 description="Required ID= value from /etc/os-release.")

    watchtower_name: str = Field(default=WATCHTOWER_NAME_DEFAULT, description="Watchtower container name.")
    watchtower_image: str = Field(default=WATCHTOWER_IMAGE_DEFAULT, description="Watchtower image.")
    watchtower_interval: int = Field(default=WATCHTOWER_INTERVAL_DEFAULT,
                                     description="Watchtower poll interval in seconds.")

    health_check_attempts: int = Field(default=30, ge=1, description="Health poll attempt ceiling.")
    health_check_interval: float = Field(default=2.0, ge=0, description="Seconds between health polls.")
    settle_delay: float = Field(default=2.0, ge=0,
                                description="Seconds to wait before running the interactive setup.")

    instances: List[DeploymentInstance] = Field(
        default_factory=lambda: [i.model_copy() for i in INSTANCES_DEFAULT],
        min_length=1,
        description="Deployment targets offered by the configuration dialog; the first is the default.",
    )
    env_defaults: EnvDefaults = Field(default_factory=EnvDefaults)

    log_file: Optional[Path] = Field(default=None, description="Optional file receiving a detailed log.")

    @property
    def compose_path(self) -> Path:
        return self.install_dir / self.compose_file
