# tests/pronghorn_installer/test_system_install.py
from unittest.mock import MagicMock, create_autospec

import pytest

from common.debian.apt_manager import AptManager
from common.orchestrator import Orchestrator, StepOutcome
from pronghorn_installer.exceptions import PreconditionError
from pronghorn_installer.system_install import (
    check_preconditions,
    create_install_directory,
    phase_install,
)


@pytest.fixture
def os_release(tmp_path):
    path = tmp_path / "os-release"
    path.write_text('NAME="Ubuntu"\nID=ubuntu\nVERSION_ID="24.04"\n')
    return path


def test_check_preconditions_requires_root(mocker, app_settings, os_release):
    mocker.patch("pronghorn_installer.system_install.os.geteuid", return_value=1000)

    with pytest.raises(PreconditionError, match="requires root privileges"):
        check_preconditions(app_settings, os_release_path=os_release)


def test_check_preconditions_root_error_names_the_command(
    mocker, app_settings, os_release
):
    mocker.patch("pronghorn_installer.system_install.os.geteuid", return_value=1000)

    with pytest.raises(PreconditionError) as excinfo:
        check_preconditions(app_settings, os_release_path=os_release)

    assert "Run with: sudo pronghorn-install" in str(excinfo.value)


def test_check_preconditions_missing_os_release(mocker, app_settings, tmp_path):
    mocker.patch("pronghorn_installer.system_install.os.geteuid", return_value=0)

    with pytest.raises(PreconditionError, match="Cannot detect OS"):
        check_preconditions(
            app_settings, os_release_path=tmp_path / "missing"
        )


def test_check_preconditions_rejects_other_distributions(
    mocker, app_settings, tmp_path
):
    mocker.patch("pronghorn_installer.system_install.os.geteuid", return_value=0)
    path = tmp_path / "os-release"
    path.write_text("ID=debian\nVERSION_ID=12\n")

    with pytest.raises(PreconditionError, match="Detected: debian"):
        check_preconditions(app_settings, os_release_path=path)


def test_check_preconditions_accepts_ubuntu(mocker, app_settings, os_release):
    mocker.patch("pronghorn_installer.system_install.os.geteuid", return_value=0)

    release = check_preconditions(app_settings, os_release_path=os_release)

    assert release["ID"] == "ubuntu"
    assert release["VERSION_ID"] == "24.04"


def test_create_install_directory_skips_existing(mocker, app_settings):
    mock_chown = mocker.patch("pronghorn_installer.system_install.os.chown")

    outcome = create_install_directory("alice", app_settings)

    assert outcome == StepOutcome.ALREADY_SATISFIED
    mock_chown.assert_not_called()


def test_create_install_directory_creates_and_chowns(mocker, app_settings, tmp_path):
    app_settings.install_dir = tmp_path / "opt" / "pronghorn"
    mocker.patch(
        "pronghorn_installer.system_install.pwd.getpwnam",
        return_value=MagicMock(pw_uid=1001, pw_gid=1002),
    )
    mock_chown = mocker.patch("pronghorn_installer.system_install.os.chown")

    outcome = create_install_directory("alice", app_settings)

    assert outcome == StepOutcome.PERFORMED
    assert app_settings.install_dir.is_dir()
    mock_chown.assert_called_once_with(app_settings.install_dir, 1001, 1002)


@pytest.fixture
def satisfied_host(mocker, monkeypatch):
    """Every Phase 1 probe reports the target state as already present."""
    monkeypatch.setenv("DEBIAN_FRONTEND", "noninteractive")
    apt_manager = create_autospec(AptManager, instance=True)
    apt_manager.upgradable_packages.return_value = []
    apt_manager.install.return_value = []
    mocker.patch(
        "pronghorn_installer.system_install.AptManager", return_value=apt_manager
    )
    mocker.patch(
        "pronghorn_installer.system_install.check_preconditions",
        return_value={"NAME": "Ubuntu", "VERSION_ID": "24.04", "ID": "ubuntu"},
    )
    mocker.patch(
        "pronghorn_installer.system_install.get_invoking_user", return_value="alice"
    )
    mocker.patch(
        "pronghorn_installer.system_install.get_tool_version", return_value="1.2.3"
    )
    mocker.patch(
        "pronghorn_installer.components.docker_installer.command_exists",
        return_value=True,
    )
    mocker.patch(
        "pronghorn_installer.components.docker_installer.user_in_group",
        return_value=True,
    )
    mocker.patch(
        "pronghorn_installer.components.gh_cli_installer.command_exists",
        return_value=True,
    )
    mocker.patch(
        "pronghorn_installer.components.watchtower_installer.container_names",
        return_value=["watchtower", "pronghorn-pronghorn-1"],
    )
    return apt_manager


def test_phase_install_rerun_performs_no_mutations(
    mocker, app_settings, mock_logger, satisfied_host, capsys
):
    apt_manager = satisfied_host
    mock_elevated = mocker.patch(
        "pronghorn_installer.components.docker_installer.run_elevated_command"
    )
    mock_watchtower_run = mocker.patch(
        "pronghorn_installer.components.watchtower_installer.run_command"
    )
    mock_chown = mocker.patch("pronghorn_installer.system_install.os.chown")
    run_spy = mocker.spy(Orchestrator, "run")

    assert phase_install(app_settings, mock_logger) == 0

    apt_manager.upgrade.assert_not_called()
    apt_manager.remove.assert_not_called()
    apt_manager.add_gpg_key_from_url.assert_not_called()
    apt_manager.add_repository.assert_not_called()
    mock_elevated.assert_not_called()
    mock_watchtower_run.assert_not_called()
    mock_chown.assert_not_called()

    orchestrator = run_spy.call_args.args[0]
    assert orchestrator.performed == []
    assert orchestrator.satisfied == [
        "system_packages",
        "prerequisites",
        "docker_engine",
        "docker_group",
        "github_cli",
        "watchtower",
        "install_directory",
    ]
    assert "Phase 1 Complete!" in capsys.readouterr().out


def test_phase_install_summary_shows_versions_and_next_step(
    app_settings, mock_logger, satisfied_host, capsys
):
    phase_install(app_settings, mock_logger)

    out = capsys.readouterr().out
    assert "Docker Engine 1.2.3" in out
    assert "Docker Compose 1.2.3" in out
    assert "GitHub CLI 1.2.3" in out
    assert "Log out and back in" in out
    assert "  pronghorn-install\n" in out
    assert "curl" not in out
