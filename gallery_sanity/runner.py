"""
================================================================================
Sanity Check Runner
================================================================================

Orchestrates one sanity check run:

    start server + driver -> connect -> navigate -> wait for load
    -> screenshot -> scenarios -> SUCCESS

Both processes live inside a single ``async with ProcessSupervisor()`` block,
so they are terminated on every exit path. Only a driver that cannot be
launched is handled here (exit code 2); every other error propagates.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
import tempfile
from contextlib import ExitStack
from typing import Any, AsyncContextManager, Callable, Optional

from loguru import logger

from gallery_sanity.common import DriverConfig, HarnessConfig
from gallery_sanity.framework.process_supervisor import ProcessSupervisor, SpawnError
from gallery_sanity.framework.readiness import wait_for_element
from gallery_sanity.framework.remote_session import RemoteSession, open_session
from gallery_sanity.pages.gallery_page import GalleryPage
from gallery_sanity.reporting.reporter import ResultReporter
from gallery_sanity.scenarios.gallery_scenarios import GalleryScenarios


SessionFactory = Callable[[DriverConfig], AsyncContextManager[RemoteSession]]


class SanityCheckRunner:
    """
    Runs the gallery sanity check end to end.

    Args:
        config: Validated harness configuration
        reporter: Output sink (defaults to stdout/stderr)
        supervisor_factory: Builds the ProcessSupervisor (overridable in tests)
        session_factory: Opens the remote session (overridable in tests)
    """

    def __init__(
        self,
        config: HarnessConfig,
        reporter: Optional[ResultReporter] = None,
        supervisor_factory: Callable[..., ProcessSupervisor] = ProcessSupervisor,
        session_factory: SessionFactory = open_session,
    ) -> None:
        self.config = config
        self.reporter = reporter or ResultReporter()
        self.supervisor_factory = supervisor_factory
        self.session_factory = session_factory

    async def run(self) -> int:
        """
        Execute the run.

        Returns:
            Exit code: 0 on success, 2 when the driver cannot be launched

        Raises:
            Any error other than a driver SpawnError, after cleanup
        """
        config = self.config
        logger.info("=" * 60)
        logger.info("Starting gallery sanity check")
        logger.info(f"Application: {config.app.url}")
        logger.info(f"Driver: {config.driver.backend} at {config.driver.endpoint}")
        logger.info("=" * 60)

        with ExitStack() as stack:
            profile_dir = None
            if config.driver.needs_profile_dir:
                # Removed after the supervisor has stopped the browser
                profile_dir = stack.enter_context(
                    tempfile.TemporaryDirectory(prefix="gallery-sanity-profile-")
                )
            driver_command = config.driver.resolved_command(profile_dir)

            try:
                async with self.supervisor_factory(kill_timeout=config.kill_timeout) as supervisor:
                    await supervisor.start(config.app.resolved_command(), name="server")
                    await supervisor.start(driver_command, name="driver")

                    async with self.session_factory(config.driver) as session:
                        return await self._run_session(session)
            except SpawnError as e:
                if e.command == driver_command:
                    return self.reporter.driver_missing(config.driver, e)
                raise

    async def _run_session(self, session: RemoteSession) -> int:
        page = GalleryPage(session, self.config.app.url, self.config.scenarios)
        await page.open()

        counter_button = await wait_for_element(
            session,
            self.config.readiness.anchor_selector,
            self.config.readiness,
            progress=self.reporter.progress,
        )
        self.reporter.page_loaded()

        screenshot = await page.screenshot(self.config.screenshot_path)
        self.reporter.screenshot_taken(screenshot)

        scenarios = GalleryScenarios(page, counter_button, announce=self.reporter.scenario_started)
        await scenarios.run_all()
        return self.reporter.success()


def run_sanity_check(config: HarnessConfig, **kwargs: Any) -> int:
    """Run the sanity check on a fresh event loop and return its exit code."""
    return asyncio.run(SanityCheckRunner(config, **kwargs).run())


__all__ = [
    "SanityCheckRunner",
    "run_sanity_check",
]
