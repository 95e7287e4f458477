from pathlib import Path

from gallery_sanity.common import DriverConfig
from gallery_sanity.framework.process_supervisor import SpawnError
from gallery_sanity.reporting.reporter import (
    EXIT_DRIVER_MISSING,
    EXIT_SUCCESS,
    INSTALL_DRIVER_MESSAGES,
)


def test_progress_markers_share_a_line(reporter, reporter_streams):
    reporter.progress("Waiting..")
    reporter.progress(".")
    reporter.page_loaded()
    reporter.screenshot_taken(Path("screenshot.png"))

    assert reporter_streams[0].getvalue() == (
        "Waiting...Page compiled and loaded.\n"
        "Screenshot taken: screenshot.png\n"
    )


def test_success_prints_marker(reporter, reporter_streams):
    reporter.scenario_started("Testing popup.")

    assert reporter.success() == EXIT_SUCCESS
    assert reporter_streams[0].getvalue() == "Testing popup.\nSUCCESS\n"


def test_driver_missing_hint_per_backend(reporter, reporter_streams):
    error = SpawnError(["google-chrome"], FileNotFoundError(2, "No such file or directory"))

    assert reporter.driver_missing(DriverConfig(backend="cdp"), error) == EXIT_DRIVER_MISSING
    assert reporter_streams[1].getvalue() == INSTALL_DRIVER_MESSAGES["cdp"]
    assert reporter_streams[0].getvalue() == ""
