"""
Pronghorn installer.

This package brings a single Ubuntu host from a bare system to a running
Pronghorn instance in two phases: system dependencies (as root), then the
application setup (as the user who will operate it).
"""

__version__ = "2.0"
