"""
CLI Module - Command Line Interface for tracksync.
"""

from .app import main, run
from .exit_codes import ExitCode


__all__ = [
    "ExitCode",
    "main",
    "run",
]
