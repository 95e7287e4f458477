"""
================================================================================
Result Reporter
================================================================================

User-facing output of a sanity check run and its exit status.

stdout carries the progress markers ("Waiting..", scenario labels,
"SUCCESS"); stderr carries the driver installation hint. Diagnostics go
through loguru.

================================================================================
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, TextIO

from loguru import logger

from gallery_sanity.common import DriverConfig


EXIT_SUCCESS = 0
EXIT_DRIVER_MISSING = 2

SUCCESS_MARKER = "SUCCESS"

INSTALL_DRIVER_MESSAGES = {
    "webdriver": (
        "Cannot execute chromedriver. Install chromedriver and make sure it "
        "is on your PATH if you haven't already.\n\n"
        "For example, on a Mac with homebrew:\n"
        "\tbrew install chromedriver\n"
        "On Debian/Ubuntu:\n"
        "\tapt install chromium-driver\n"
    ),
    "cdp": (
        "Cannot execute Chrome. Install Google Chrome (or set driver.command "
        "to a Chromium binary) if you haven't already.\n"
    ),
}


class ResultReporter:
    """
    Prints progress and outcome of a run.

    Args:
        stdout: Stream for progress markers
        stderr: Stream for the installation hint
    """

    def __init__(self, stdout: Optional[TextIO] = None, stderr: Optional[TextIO] = None) -> None:
        self._stdout = stdout
        self._stderr = stderr

    @property
    def stdout(self) -> TextIO:
        return self._stdout or sys.stdout

    @property
    def stderr(self) -> TextIO:
        return self._stderr or sys.stderr

    def progress(self, marker: str) -> None:
        """Write a marker without a line break (used by the readiness poll)."""
        self.stdout.write(marker)
        self.stdout.flush()

    def line(self, text: str) -> None:
        print(text, file=self.stdout, flush=True)

    def page_loaded(self) -> None:
        self.line("Page compiled and loaded.")

    def screenshot_taken(self, path: Path) -> None:
        self.line(f"Screenshot taken: {path}")

    def scenario_started(self, label: str) -> None:
        self.line(label)

    def success(self) -> int:
        self.line(SUCCESS_MARKER)
        logger.info("Sanity check passed")
        return EXIT_SUCCESS

    def driver_missing(self, driver: DriverConfig, error: BaseException) -> int:
        """
        Report a driver that could not be launched.

        Returns:
            EXIT_DRIVER_MISSING
        """
        hint = driver.install_hint or INSTALL_DRIVER_MESSAGES.get(driver.backend, "")
        logger.error(f"Automation driver could not be started: {error}")
        self.stderr.write(hint if hint.endswith("\n") else hint + "\n")
        self.stderr.flush()
        return EXIT_DRIVER_MISSING


__all__ = [
    "EXIT_DRIVER_MISSING",
    "EXIT_SUCCESS",
    "INSTALL_DRIVER_MESSAGES",
    "ResultReporter",
    "SUCCESS_MARKER",
]
