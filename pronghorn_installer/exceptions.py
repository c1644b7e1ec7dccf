# pronghorn_installer/exceptions.py
# -*- coding: utf-8 -*-
"""Exceptions raised by the installer."""


class InstallerError(RuntimeError):
    """A fatal condition: the run stops and the process exits with status 1."""

    def __init__(self, message="The installer cannot continue."):
        super().__init__(message)


class PreconditionError(InstallerError):
    """The host does not satisfy a phase precondition (privileges, OS)."""
