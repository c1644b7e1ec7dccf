# pronghorn_installer/phase.py
# -*- coding: utf-8 -*-
"""
Phase detection.

The installer decides what to do from three probes of the host: is the
container runtime installed, can the current session use it, and is the
GitHub CLI installed. Detection runs on every invocation and is never cached.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from common.command_utils import command_exists, command_succeeds
from pronghorn_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


class Phase(str, Enum):
    INSTALL = "install"
    RELOGIN = "relogin"
    SETUP = "setup"


@dataclass(frozen=True)
class HostProbes:
    runtime_present: bool
    runtime_usable: bool
    auth_cli_present: bool


def probe_host(
    app_settings: Optional[AppSettings] = None,
    current_logger: Optional[logging.Logger] = None,
) -> HostProbes:
    """Collects the three host probes used by detect_phase."""
    runtime_present = command_exists("docker")
    runtime_usable = runtime_present and command_succeeds(
        ["docker", "info"], app_settings, current_logger
    )
    probes = HostProbes(
        runtime_present=runtime_present,
        runtime_usable=runtime_usable,
        auth_cli_present=command_exists("gh"),
    )
    (current_logger or module_logger).debug(f"Host probes: {probes}")
    return probes


def detect_phase(probes: HostProbes) -> Phase:
    """
    Maps host probes to a phase.

    - runtime missing: INSTALL
    - runtime present but unusable by this session: RELOGIN, whatever the
      state of the auth CLI (group membership needs a new login first)
    - runtime usable, auth CLI missing: INSTALL
    - otherwise: SETUP
    """
    if not probes.runtime_present:
        return Phase.INSTALL
    if not probes.runtime_usable:
        return Phase.RELOGIN
    if not probes.auth_cli_present:
        return Phase.INSTALL
    return Phase.SETUP
