# pronghorn_installer/certificates.py
# -*- coding: utf-8 -*-
"""
Self-signed certificate pairs: the TLS pair served by the web container and
the SAML signing pair. Each pair is generated once with openssl and never
rotated.
"""

import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

from common.command_utils import log_installer, run_command
from common.file_utils import remove_files
from common.orchestrator import StepOutcome
from pronghorn_installer.config import (
    SAML_CERT_DAYS,
    SAML_CERT_FILE,
    SAML_CERT_SUBJECT,
    SAML_KEY_FILE,
    TLS_CERT_DAYS,
    TLS_CERT_FILE,
    TLS_CERT_SUBJECT,
    TLS_KEY_FILE,
)
from pronghorn_installer.config_models import AppSettings

module_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CertificatePair:
    name: str
    cert_path: str
    key_path: str
    days: int
    subject: str
    # Placeholder pairs get a replace-before-going-live warning.
    placeholder: bool = False


TLS_PAIR = CertificatePair(
    name="SSL",
    cert_path=TLS_CERT_FILE,
    key_path=TLS_KEY_FILE,
    days=TLS_CERT_DAYS,
    subject=TLS_CERT_SUBJECT,
    placeholder=True,
)
SAML_PAIR = CertificatePair(
    name="SAML",
    cert_path=SAML_CERT_FILE,
    key_path=SAML_KEY_FILE,
    days=SAML_CERT_DAYS,
    subject=SAML_CERT_SUBJECT,
)


def ensure_certificate_pair(
    pair: CertificatePair,
    app_settings: AppSettings,
    context: Optional[Dict[str, Any]] = None,
    current_logger: Optional[logging.Logger] = None,
) -> StepOutcome:
    """
    Generates the pair with a single ``openssl req -x509`` call unless both
    files already exist.

    A failed call removes whichever half was written, so a half-pair never
    survives to the next run.

    Raises:
        subprocess.CalledProcessError: If openssl fails.
    """
    logger_to_use = current_logger if current_logger else module_logger
    install_dir = Path(app_settings.install_dir)
    cert_path = install_dir / pair.cert_path
    key_path = install_dir / pair.key_path

    if cert_path.is_file() and key_path.is_file():
        log_installer(
            f"{pair.name} certificates exist",
            "success",
            logger_to_use,
            app_settings,
        )
        return StepOutcome.ALREADY_SATISFIED

    log_installer(
        f"Generating {pair.name} certificates (self-signed, {pair.days} days)...",
        "info",
        logger_to_use,
        app_settings,
    )
    cert_path.parent.mkdir(parents=True, exist_ok=True)
    key_path.parent.mkdir(parents=True, exist_ok=True)
    try:
        run_command(
            [
                "openssl",
                "req",
                "-x509",
                "-nodes",
                "-days",
                str(pair.days),
                "-newkey",
                "rsa:2048",
                "-keyout",
                str(key_path),
                "-out",
                str(cert_path),
                "-subj",
                pair.subject,
            ],
            app_settings,
            capture_output=True,
            current_logger=logger_to_use,
        )
    except subprocess.CalledProcessError:
        remove_files([cert_path, key_path], app_settings, logger_to_use)
        raise

    log_installer(
        f"{pair.name} certificates generated (self-signed)",
        "success",
        logger_to_use,
        app_settings,
    )
    if pair.placeholder:
        log_installer(
            "Replace with production certificates before going live",
            "warning",
            logger_to_use,
            app_settings,
        )
    return StepOutcome.PERFORMED
