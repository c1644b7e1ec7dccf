#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Core utility functions for the project.

This module provides helper functions for:
- Logging setup (colour-coded console output, optional log file).
- Section headers printed between installer phases.
"""

import logging
import os
import sys
from pathlib import Path
from typing import IO, Dict, List, Optional

from common.command_utils import SUCCESS_LEVEL

module_logger = logging.getLogger(__name__)

DETAILED_LOG_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"
CONSOLE_LOG_FORMAT = "%(prefix)s %(message)s"

RED = "\033[0;31m"
GREEN = "\033[0;32m"
YELLOW = "\033[1;33m"
BLUE = "\033[0;34m"
CYAN = "\033[0;36m"
BOLD = "\033[1m"
NC = "\033[0m"

LEVEL_PREFIXES: Dict[int, tuple] = {
    logging.DEBUG: ("[DEBUG]", CYAN),
    logging.INFO: ("[INFO]", BLUE),
    SUCCESS_LEVEL: ("[OK]", GREEN),
    logging.WARNING: ("[WARN]", YELLOW),
    logging.ERROR: ("[ERROR]", RED),
    logging.CRITICAL: ("[ERROR]", RED),
}


def colour_enabled(stream: Optional[IO] = None) -> bool:
    """True when ANSI colour should be written to the given stream."""
    if os.environ.get("NO_COLOR"):
        return False
    stream = stream if stream is not None else sys.stdout
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


class PrefixFormatter(logging.Formatter):
    """
    A formatter that prefixes each record with a colour-coded level tag,
    e.g. ``[OK] Docker installed``.
    """

    def __init__(self, fmt=None, datefmt=None, use_colour: bool = True):
        super().__init__(fmt or CONSOLE_LOG_FORMAT, datefmt)
        self.use_colour = use_colour

    def format(self, record):
        tag, colour = LEVEL_PREFIXES.get(record.levelno, ("", ""))
        if tag and self.use_colour:
            record.prefix = f"{colour}{tag}{NC}"
        else:
            record.prefix = tag
        return super().format(record)


class _MaxLevelFilter(logging.Filter):
    """Passes records strictly below a level."""

    def __init__(self, max_level: int):
        super().__init__()
        self.max_level = max_level

    def filter(self, record):
        return record.levelno < self.max_level


def setup_logging(
    log_level: int = logging.INFO,
    log_file: Optional[str] = None,
    log_to_console: bool = True,
) -> None:
    """
    Configures root logging for the installer.

    Console output is split by severity: records below ERROR go to stdout,
    ERROR and CRITICAL go to stderr. Each console line carries a colour-coded
    prefix. When ``log_file`` is given, every record is also appended there in
    the detailed timestamped format.

    Parameters:
    log_level: int
        The logging level to configure. Defaults to logging.INFO.
    log_file: Optional[str]
        Path of a log file to append to. Defaults to None (no file).
    log_to_console: bool
        Whether to log to the console. Defaults to True.
    """
    handlers: List[logging.Handler] = []
    if log_file:
        try:
            log_file_path = Path(log_file)
            log_file_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_file_path, mode="a")
            file_handler.setFormatter(
                logging.Formatter(
                    DETAILED_LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"
                )
            )
            handlers.append(file_handler)
        except OSError as e:
            print(
                f"Warning: Could not create file handler for log file {log_file}: {e}",
                file=sys.stderr,
            )

    if log_to_console:
        stdout_handler = logging.StreamHandler(sys.stdout)
        stdout_handler.addFilter(_MaxLevelFilter(logging.ERROR))
        stdout_handler.setFormatter(
            PrefixFormatter(use_colour=colour_enabled(sys.stdout))
        )
        handlers.append(stdout_handler)

        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setLevel(logging.ERROR)
        stderr_handler.setFormatter(
            PrefixFormatter(use_colour=colour_enabled(sys.stderr))
        )
        handlers.append(stderr_handler)

    if not handlers:  # pragma: no cover
        handlers.append(logging.NullHandler())

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)

    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    for handler in handlers:
        root_logger.addHandler(handler)

    module_logger.debug(
        f"Logging configured. Level: {logging.getLevelName(log_level)}. File: {log_file or 'none'}"
    )


def resolve_log_level(verbose: bool = False) -> int:
    """
    Picks the root log level: DEBUG with --verbose, else LOG_LEVEL from the
    environment, else INFO.
    """
    if verbose:
        return logging.DEBUG
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    numeric_level = getattr(logging, level_name, None)
    if not isinstance(numeric_level, int):
        return logging.INFO
    return numeric_level


def print_header(title: str, stream: Optional[IO] = None) -> None:
    """Prints a bold section header such as ``=== Phase 1 ===``."""
    stream = stream if stream is not None else sys.stdout
    if colour_enabled(stream):
        print(f"\n{BOLD}{CYAN}=== {title} ==={NC}\n", file=stream)
    else:
        print(f"\n=== {title} ===\n", file=stream)


def highlight(text: str, colour: str, stream: Optional[IO] = None) -> str:
    """Wraps text in a colour code when the stream supports it."""
    if colour_enabled(stream):
        return f"{colour}{text}{NC}"
    return text
