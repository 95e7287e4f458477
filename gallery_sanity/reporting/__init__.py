"""
Run output and exit codes.
"""

from .reporter import (
    EXIT_DRIVER_MISSING,
    EXIT_SUCCESS,
    INSTALL_DRIVER_MESSAGES,
    ResultReporter,
    SUCCESS_MARKER,
)

__all__ = [
    "EXIT_DRIVER_MISSING",
    "EXIT_SUCCESS",
    "INSTALL_DRIVER_MESSAGES",
    "ResultReporter",
    "SUCCESS_MARKER",
]
