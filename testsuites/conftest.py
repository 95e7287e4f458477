"""
================================================================================
Test Suite Pytest Configuration
================================================================================

Shared fixtures for the sanity check tests:
    - isolation from SANITY_* variables in the caller's environment
    - fake gallery sessions and a session factory for the runner
    - a harness configuration whose "server" and "driver" are short-lived
      Python processes

================================================================================
"""

import io
import os
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Callable

import pytest

from gallery_sanity.common import (
    AppConfig,
    ConfigLoader,
    DriverConfig,
    HarnessConfig,
    ReadinessConfig,
    ScenarioConfig,
)
from gallery_sanity.reporting.reporter import ResultReporter
from testsuites.fakes import FakeGallerySession


# A child that stays alive until signalled
SLEEPER = [sys.executable, "-c", "import time; time.sleep(60)"]


@pytest.fixture(autouse=True)
def _isolated_config(monkeypatch):
    """Drop SANITY_* overrides and the ConfigLoader singleton around each test."""
    for key in list(os.environ):
        if key.startswith("SANITY_"):
            monkeypatch.delenv(key)
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest.fixture
def gallery_session() -> FakeGallerySession:
    return FakeGallerySession()


@pytest.fixture
def session_factory() -> Callable:
    """
    Build a session factory for SanityCheckRunner around a fake session.

    Usage:
        factory = session_factory(FakeGallerySession(load_after=2))
    """

    def build(session: FakeGallerySession):
        @asynccontextmanager
        async def open_fake(driver: DriverConfig) -> AsyncIterator[FakeGallerySession]:
            try:
                yield session
            finally:
                await session.close()

        return open_fake

    return build


@pytest.fixture
def harness_config(tmp_path: Path) -> HarnessConfig:
    return HarnessConfig(
        app=AppConfig(command=tuple(SLEEPER), port=8123),
        driver=DriverConfig(command=tuple(SLEEPER), connect_timeout=1.0, connect_interval=0.1),
        readiness=ReadinessConfig(interval=0.01, timeout=1.0),
        scenarios=ScenarioConfig(transition_timeout=0.5, poll_interval=0.01),
        screenshot_path=tmp_path / "screenshot.png",
        kill_timeout=2.0,
    )


@pytest.fixture
def reporter_streams():
    return io.StringIO(), io.StringIO()


@pytest.fixture
def reporter(reporter_streams) -> ResultReporter:
    stdout, stderr = reporter_streams
    return ResultReporter(stdout=stdout, stderr=stderr)


@pytest.fixture
def child_output() -> io.BytesIO:
    return io.BytesIO()
