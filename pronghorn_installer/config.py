# pronghorn_installer/config.py
# -*- coding: utf-8 -*-
"""
Centralized static constants and definitions for the Pronghorn installer.

This module defines truly static values: package lists for apt installation,
repository locations, the installation directory layout, and the names of
environment variables the installer reads.

Runtime-overridable configuration (install directory, image, timings, the
deployment instance list) is handled by 'pronghorn_installer/config_models.py'
and 'pronghorn_installer/config_loader.py'.
"""

SCRIPT_VERSION: str = "2.0"

REEXEC_ENV_VAR: str = "PRONGHORN_REEXEC"

PREREQ_PACKAGES: list[str] = [
    "curl",
    "git",
    "openssl",
    "ca-certificates",
    "apt-transport-https",
    "software-properties-common",
    "gnupg",
    "lsb-release",
]

LEGACY_DOCKER_PACKAGES: list[str] = [
    "docker",
    "docker-engine",
    "docker.io",
    "containerd",
    "runc",
]

DOCKER_PACKAGES: list[str] = [
    "docker-ce",
    "docker-ce-cli",
    "containerd.io",
    "docker-buildx-plugin",
    "docker-compose-plugin",
]

DOCKER_GPG_URL: str = "https://download.docker.com/linux/ubuntu/gpg"
DOCKER_KEYRING_PATH: str = "/etc/apt/keyrings/docker.asc"
DOCKER_REPO_URL: str = "https://download.docker.com/linux/ubuntu"
DOCKER_GROUP: str = "docker"

GH_CLI_GPG_URL: str = "https://cli.github.com/packages/githubcli-archive-keyring.gpg"
GH_CLI_KEYRING_PATH: str = "/usr/share/keyrings/githubcli-archive-keyring.gpg"
GH_CLI_REPO_URL: str = "https://cli.github.com/packages"
GH_HOSTNAME: str = "github.com"
GH_PACKAGE_SCOPES: str = "read:packages,write:packages"
GH_TOKEN_URL: str = "https://github.com/settings/tokens/new"

# Install directory layout, relative to AppSettings.install_dir
ENV_FILE_NAME: str = ".env"
DATABASE_FILE: str = "database/database.sqlite"
STORAGE_DIRECTORIES: list[str] = [
    "storage/certs",
    "storage/logs",
    "storage/uploads",
    "storage/framework/sessions",
    "storage/framework/views",
    "storage/framework/cache/data",
    "database",
    "docker/ssl",
]

TLS_CERT_FILE: str = "docker/ssl/fullchain.pem"
TLS_KEY_FILE: str = "docker/ssl/privkey.pem"
TLS_CERT_DAYS: int = 365
TLS_CERT_SUBJECT: str = "/CN=localhost/O=Pronghorn/C=CA"

SAML_CERT_FILE: str = "storage/certs/saml.crt"
SAML_KEY_FILE: str = "storage/certs/saml.key"
SAML_CERT_DAYS: int = 3650
SAML_CERT_SUBJECT: str = "/CN=pronghorn-saml/O=Pronghorn/C=CA"

ENV_FILE_KEYS: list[str] = [
    "APP_NAME",
    "APP_ENV",
    "APP_KEY",
    "APP_DEBUG",
    "APP_URL",
    "INSTANCE_ID",
    "DB_CONNECTION",
    "DB_DATABASE",
    "CACHE_STORE",
    "QUEUE_CONNECTION",
    "SESSION_DRIVER",
    "SAML2_SP_BASE_URL",
    "ILS_DRIVER",
]

HEALTHY_MARKER: str = "(healthy)"
