"""
Repository-level pytest configuration.

Registers the project's markers and exposes the repo root. The live
end-to-end check is opt-in (SANITY_LIVE=1) because it needs the gallery's
toolchain and chromedriver on the PATH.
"""

from __future__ import annotations

from pathlib import Path

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""
    config.addinivalue_line(
        "markers", "unit: Fast tests with no browser or network"
    )
    config.addinivalue_line(
        "markers", "process: Tests that spawn real child processes"
    )
    config.addinivalue_line(
        "markers", "e2e: Runs the full sanity check against a live gallery"
    )


def pytest_report_header(config):
    return ["Gallery sanity check"]


@pytest.fixture(scope="session")
def project_root() -> Path:
    """Return repo root path."""
    return Path(__file__).parent
