# common/file_utils.py
# -*- coding: utf-8 -*-
"""
File system utility functions: atomic writes, directory creation and
cleanup of partially written artifacts.
"""

import logging
import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional, Union

from pronghorn_installer.config_models import AppSettings

from .command_utils import log_installer

module_logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def atomic_write_text(
    target: PathLike,
    content: str,
    mode: int = 0o644,
) -> Path:
    """
    Writes ``content`` to ``target`` in one atomic step.

    The data is written to a temporary file in the target's directory, flushed
    to disk and then renamed over the target, so readers never observe a
    partially written file.

    Returns:
        Path: The target path.
    """
    target_path = Path(target)
    target_path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(
        dir=str(target_path.parent), prefix=f".{target_path.name}.", suffix=".tmp"
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
            handle.flush()
            os.fsync(handle.fileno())
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target_path)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return target_path


def ensure_directories(
    base_dir: PathLike,
    relative_dirs: Iterable[str],
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> List[Path]:
    """
    Creates each relative directory under ``base_dir`` (like ``mkdir -p``).

    Returns:
        List[Path]: The directories that did not exist before the call.
    """
    logger_to_use = current_logger if current_logger else module_logger
    created: List[Path] = []
    for relative in relative_dirs:
        directory = Path(base_dir) / relative
        if not directory.is_dir():
            directory.mkdir(parents=True, exist_ok=True)
            created.append(directory)
            log_installer(
                f"Created directory {directory}",
                "debug",
                logger_to_use,
                app_settings,
            )
    return created


def remove_files(
    paths: Iterable[PathLike],
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> None:
    """Removes each existing file, ignoring the ones already absent."""
    logger_to_use = current_logger if current_logger else module_logger
    for path in paths:
        file_path = Path(path)
        if file_path.exists():
            file_path.unlink()
            log_installer(
                f"Removed partial artifact {file_path}",
                "warning",
                logger_to_use,
                app_settings,
            )


def is_non_empty_file(path: PathLike) -> bool:
    """True when the path is a regular file with at least one byte."""
    file_path = Path(path)
    return file_path.is_file() and file_path.stat().st_size > 0
