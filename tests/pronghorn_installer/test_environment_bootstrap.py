# tests/pronghorn_installer/test_environment_bootstrap.py
import subprocess

import pytest

from common.orchestrator import StepOutcome
from pronghorn_installer.config import ENV_FILE_KEYS
from pronghorn_installer.environment_bootstrap import (
    bootstrap_environment,
    build_env_values,
    generate_app_key,
    normalize_base_url,
    prompt_base_url,
    render_env_file,
    select_instance,
    write_env_file,
)
from pronghorn_installer.exceptions import InstallerError


def answers(mocker, *values):
    return mocker.patch("builtins.input", side_effect=list(values))


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("example.org", "https://example.org"),
        ("https://example.org/", "https://example.org"),
        ("http://pronghorn.local:8080", "http://pronghorn.local:8080"),
        ("  library.example.edu/pronghorn  ", "https://library.example.edu/pronghorn"),
    ],
)
def test_normalize_base_url(raw, expected):
    assert normalize_base_url(raw) == expected


@pytest.mark.parametrize("raw", ["", "   ", "https://", "ftp://example.org"])
def test_normalize_base_url_rejects(raw):
    with pytest.raises(ValueError):
        normalize_base_url(raw)


def test_prompt_base_url_reprompts_on_empty_input(mocker, app_settings, mock_logger):
    mock_input = answers(mocker, "", "example.org")

    assert prompt_base_url(app_settings, mock_logger) == "https://example.org"
    assert mock_input.call_count == 2
    mock_logger.warning.assert_called_once()


def test_prompt_base_url_reprompts_on_invalid_url(mocker, app_settings):
    mock_input = answers(mocker, "ftp://example.org", "https://", "example.org")

    assert prompt_base_url(app_settings) == "https://example.org"
    assert mock_input.call_count == 3


def test_prompt_base_url_end_of_input(mocker, app_settings):
    mocker.patch("builtins.input", side_effect=EOFError)

    with pytest.raises(InstallerError, match="No base URL"):
        prompt_base_url(app_settings)


def test_select_instance_by_number(mocker, app_settings):
    answers(mocker, "2")

    assert select_instance(app_settings).id == "staging"


def test_select_instance_empty_picks_first_silently(mocker, app_settings, mock_logger):
    answers(mocker, "")

    assert select_instance(app_settings, mock_logger).id == "default"
    mock_logger.warning.assert_not_called()


@pytest.mark.parametrize("answer", ["9", "0", "staging", "-1"])
def test_select_instance_invalid_picks_first_with_warning(
    mocker, app_settings, mock_logger, answer
):
    answers(mocker, answer)

    assert select_instance(app_settings, mock_logger).id == "default"
    mock_logger.warning.assert_called_once()


def test_generate_app_key(mocker, app_settings, make_completed):
    mock_run = mocker.patch(
        "pronghorn_installer.environment_bootstrap.run_command",
        return_value=make_completed(stdout="base64:abc123=\n"),
    )

    assert generate_app_key(app_settings) == "base64:abc123="
    assert mock_run.call_args.args[0] == [
        "docker",
        "run",
        "--rm",
        "--entrypoint",
        "php",
        app_settings.image,
        "artisan",
        "key:generate",
        "--show",
    ]


@pytest.mark.parametrize(
    "run_kwargs",
    [
        {"return_value": subprocess.CompletedProcess([], 0, stdout="  \n")},
        {"side_effect": subprocess.CalledProcessError(1, ["docker"])},
    ],
)
def test_generate_app_key_failure_is_fatal(mocker, app_settings, run_kwargs):
    mocker.patch("pronghorn_installer.environment_bootstrap.run_command", **run_kwargs)

    with pytest.raises(InstallerError, match="Failed to generate APP_KEY"):
        generate_app_key(app_settings)


def test_render_env_file_uses_fixed_key_order(app_settings):
    instance = app_settings.instances[1]
    values = build_env_values(app_settings, instance, "https://example.org", "base64:k")
    values["EXTRA"] = "ignored"

    lines = render_env_file(values).splitlines()

    assert [line.split("=", 1)[0] for line in lines] == ENV_FILE_KEYS
    assert "APP_URL=https://example.org" in lines
    assert "SAML2_SP_BASE_URL=https://example.org" in lines
    assert "INSTANCE_ID=staging" in lines
    assert "APP_KEY=base64:k" in lines
    assert "DB_CONNECTION=sqlite" in lines


def test_bootstrap_environment_existing_file_is_untouched(mocker, app_settings, install_dir):
    env_path = install_dir / ".env"
    env_path.write_text("APP_KEY=keep-me\n")
    mock_input = mocker.patch("builtins.input")
    mock_run = mocker.patch("pronghorn_installer.environment_bootstrap.run_command")

    assert bootstrap_environment(app_settings) == StepOutcome.ALREADY_SATISFIED

    mock_input.assert_not_called()
    mock_run.assert_not_called()
    assert env_path.read_text() == "APP_KEY=keep-me\n"


def test_bootstrap_environment_writes_file(mocker, app_settings, install_dir, make_completed):
    answers(mocker, "3", "example.org")
    mocker.patch(
        "pronghorn_installer.environment_bootstrap.run_command",
        return_value=make_completed(stdout="base64:generated=\n"),
    )

    assert bootstrap_environment(app_settings) == StepOutcome.PERFORMED

    env_path = install_dir / ".env"
    content = env_path.read_text()
    assert "INSTANCE_ID=training\n" in content
    assert "APP_URL=https://example.org\n" in content
    assert "APP_KEY=base64:generated=\n" in content
    assert env_path.stat().st_mode & 0o777 == 0o644
    assert [p.name for p in install_dir.iterdir()] == [".env"]


def test_write_env_file_is_readable_by_other_users(install_dir):
    values = {key: "x" for key in ENV_FILE_KEYS}

    env_path = write_env_file(install_dir / ".env", values)

    mode = env_path.stat().st_mode & 0o777
    assert mode & 0o044 == 0o044
    assert mode & 0o022 == 0
