# tests/conftest.py
import logging
import os
import subprocess
from unittest.mock import MagicMock

import pytest

from pronghorn_installer.config_models import AppSettings


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keeps settings and re-exec state from leaking in from the caller's shell."""
    for name in list(os.environ):
        if name.startswith("PRONGHORN_"):
            monkeypatch.delenv(name, raising=False)
    monkeypatch.delenv("SUDO_USER", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)
    monkeypatch.setenv("NO_COLOR", "1")


@pytest.fixture
def install_dir(tmp_path):
    directory = tmp_path / "pronghorn"
    directory.mkdir()
    return directory


@pytest.fixture
def app_settings(install_dir):
    """Real settings pointed at a temporary install directory, with no waits."""
    return AppSettings(
        install_dir=install_dir,
        health_check_interval=0,
        settle_delay=0,
    )


@pytest.fixture
def mock_logger():
    """Fixture to create a mock logger for testing."""
    return MagicMock(spec=logging.Logger)


def completed(returncode=0, stdout="", stderr=""):
    """Builds the CompletedProcess a mocked run_command returns."""
    return subprocess.CompletedProcess(
        args=[], returncode=returncode, stdout=stdout, stderr=stderr
    )


@pytest.fixture
def make_completed():
    return completed
