"""
Live sanity check against a real gallery build.

Needs the gallery's serve toolchain and chromedriver (or Chrome for the cdp
backend) on the PATH, so it only runs when SANITY_LIVE=1 is set. Run it from
the gallery's top-level directory:

    SANITY_LIVE=1 pytest testsuites/e2e -m e2e
"""

import os

import pytest

from gallery_sanity.common import ConfigLoader, HarnessConfig
from gallery_sanity.reporting.reporter import EXIT_SUCCESS
from gallery_sanity.runner import SanityCheckRunner


pytestmark = [
    pytest.mark.e2e,
    pytest.mark.skipif(os.environ.get("SANITY_LIVE") != "1", reason="set SANITY_LIVE=1 to run"),
]


@pytest.mark.asyncio
async def test_gallery_passes_sanity_check(tmp_path, reporter, reporter_streams):
    loader = ConfigLoader()
    loader.set("screenshot.filename", str(tmp_path / "screenshot.png"))
    config = HarnessConfig.from_loader(loader)

    exit_code = await SanityCheckRunner(config, reporter=reporter).run()

    stdout, stderr = reporter_streams
    assert exit_code == EXIT_SUCCESS, stderr.getvalue()
    assert stdout.getvalue().endswith("SUCCESS\n")
    assert config.screenshot_path.stat().st_size > 0
