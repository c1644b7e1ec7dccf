from unittest.mock import patch

import pytest

from common.file_utils import (
    atomic_write_text,
    ensure_directories,
    is_non_empty_file,
    remove_files,
)


def test_atomic_write_text_creates_file_with_mode(tmp_path):
    target = tmp_path / "conf" / ".env"

    result = atomic_write_text(target, "APP_KEY=abc\n", mode=0o600)

    assert result == target
    assert target.read_text() == "APP_KEY=abc\n"
    assert target.stat().st_mode & 0o777 == 0o600
    assert [p.name for p in target.parent.iterdir()] == [".env"]


def test_atomic_write_text_replaces_existing(tmp_path):
    target = tmp_path / "docker.list"
    target.write_text("old\n")

    atomic_write_text(target, "new\n")

    assert target.read_text() == "new\n"


def test_atomic_write_text_failure_keeps_target_and_cleans_up(tmp_path):
    target = tmp_path / ".env"
    target.write_text("original\n")

    with patch("common.file_utils.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(OSError, match="disk full"):
            atomic_write_text(target, "partial\n")

    assert target.read_text() == "original\n"
    assert [p.name for p in tmp_path.iterdir()] == [".env"]


def test_ensure_directories_reports_created(tmp_path, app_settings):
    (tmp_path / "storage" / "logs").mkdir(parents=True)

    created = ensure_directories(
        tmp_path, ["storage/logs", "storage/framework/cache/data"], app_settings
    )

    assert created == [tmp_path / "storage/framework/cache/data"]
    assert (tmp_path / "storage/framework/cache/data").is_dir()


def test_remove_files_ignores_missing(tmp_path, app_settings, mock_logger):
    present = tmp_path / "saml.key"
    present.write_text("key")

    remove_files([present, tmp_path / "saml.crt"], app_settings, mock_logger)

    assert not present.exists()
    mock_logger.warning.assert_called_once()


def test_is_non_empty_file(tmp_path):
    empty = tmp_path / "empty.yml"
    empty.touch()
    full = tmp_path / "full.yml"
    full.write_text("services: {}\n")

    assert is_non_empty_file(full) is True
    assert is_non_empty_file(empty) is False
    assert is_non_empty_file(tmp_path / "missing.yml") is False
    assert is_non_empty_file(tmp_path) is False
