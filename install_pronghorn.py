#!/usr/bin/env python3
# filename: install_pronghorn.py
# -*- coding: utf-8 -*-
"""
Entry point for the Pronghorn installer.

The installer has no subcommands: what it does is decided from the state of
the host on every run.

- Docker missing, or GitHub CLI missing: Phase 1 (system dependencies, as root)
- Docker installed but not usable by this session: ask for a re-login
- Everything usable: Phase 2 (application setup, as a regular user)

It is installed as the ``pronghorn-install`` console script; ``--help`` lists
the commands that set it up on a fresh host.
"""

import argparse
import logging
import sys
from typing import List, Optional

from common.core_utils import (
    BOLD,
    CYAN,
    YELLOW,
    highlight,
    resolve_log_level,
    setup_logging,
)
from pronghorn_installer.app_setup import phase_setup
from pronghorn_installer.config import SCRIPT_VERSION
from pronghorn_installer.config_loader import load_app_settings
from pronghorn_installer.config_models import AppSettings
from pronghorn_installer.exceptions import InstallerError
from pronghorn_installer.phase import Phase, detect_phase, probe_host
from pronghorn_installer.privileges import (
    bootstrap_commands,
    ensure_interactive_stdin,
    run_hint,
)
from pronghorn_installer.system_install import phase_install

EXIT_INTERRUPTED = 130

logger = logging.getLogger("pronghorn_installer")


def parse_args(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Installer for Pronghorn. Detects the host state and runs "
        "the next installation phase.",
        epilog="First-time setup on a fresh host:\n"
        + "\n".join(f"  {line}" for line in bootstrap_commands()),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable verbose output"
    )
    parser.add_argument(
        "--config-file",
        default=None,
        help="YAML file with settings overrides "
        "(default: /etc/pronghorn/installer.yaml)",
    )
    parser.add_argument(
        "--log-file",
        default=None,
        help="Also write a detailed log to this file",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {SCRIPT_VERSION}"
    )
    return parser.parse_args(args)


def print_banner() -> None:
    print("")
    print(highlight("Pronghorn Installer", BOLD))
    print("===================")
    print("")


def print_relogin_instructions(app_settings: AppSettings) -> None:
    print(
        highlight(
            "Docker is installed but you need to log out and back in", YELLOW
        )
    )
    print("for your user to have docker access.")
    print("")
    print("After logging back in, run the installer again (without sudo):")
    print(f"  {highlight(run_hint(app_settings, elevated=False), CYAN)}")
    print("")


def run_phase(
    phase: Phase,
    app_settings: AppSettings,
    argv: Optional[List[str]] = None,
) -> int:
    if phase == Phase.INSTALL:
        return phase_install(app_settings, logger)
    if phase == Phase.RELOGIN:
        print_relogin_instructions(app_settings)
        return 0
    return phase_setup(app_settings, logger, argv=argv)


def main(args: Optional[List[str]] = None) -> int:
    """Main entry point for the Pronghorn installer."""
    parsed_args = parse_args(args)
    log_level = resolve_log_level(parsed_args.verbose)
    setup_logging(log_level)

    app_settings = load_app_settings(parsed_args, current_logger=logger)
    if app_settings.log_file:
        setup_logging(log_level, log_file=str(app_settings.log_file))

    child_argv = list(sys.argv[1:] if args is None else args)
    try:
        relaunch_status = ensure_interactive_stdin(
            app_settings, logger, argv=child_argv
        )
        if relaunch_status is not None:
            return relaunch_status

        print_banner()
        phase = detect_phase(probe_host(app_settings, logger))
        logger.debug(f"Detected phase: {phase.value}")
        return run_phase(phase, app_settings, argv=child_argv)
    except InstallerError as e:
        logger.error(str(e))
        logger.debug("Installer stopped", exc_info=True)
        return 1
    except KeyboardInterrupt:
        print("")
        logger.warning("Interrupted.")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    sys.exit(main())
