"""CLI module for Tatua.

This package provides the command-line interface for the ticket desk.
"""

from .main import ExitCode, app

__all__ = [
    'ExitCode',
    'app',
]
