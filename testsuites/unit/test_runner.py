import dataclasses
import io
import tempfile
from pathlib import Path

import pytest

from gallery_sanity.framework.process_supervisor import ProcessSupervisor, SpawnError
from gallery_sanity.framework.wait_helpers import WaitTimeoutError
from gallery_sanity.pages.gallery_page import ScenarioAssertionError
from gallery_sanity.reporting.reporter import EXIT_DRIVER_MISSING, EXIT_SUCCESS
from gallery_sanity.runner import SanityCheckRunner, run_sanity_check
from testsuites.fakes import PNG_BYTES, FakeGallerySession


pytestmark = pytest.mark.process


@pytest.fixture
def supervisors():
    """ProcessSupervisors created by the runner, in creation order."""
    return []


@pytest.fixture
def supervisor_factory(supervisors):
    def build(**kwargs):
        supervisor = ProcessSupervisor(output=io.BytesIO(), **kwargs)
        supervisors.append(supervisor)
        return supervisor

    return build


def unreachable_session_factory(driver):
    raise AssertionError("no session should be opened")


def all_stopped(supervisor):
    return all(p.terminated and p.returncode is not None for p in supervisor.processes)


@pytest.mark.asyncio
async def test_successful_run(
    harness_config, reporter, reporter_streams, session_factory, supervisor_factory, supervisors
):
    session = FakeGallerySession(load_after=2, popup_delay=2)
    runner = SanityCheckRunner(
        harness_config,
        reporter=reporter,
        supervisor_factory=supervisor_factory,
        session_factory=session_factory(session),
    )

    exit_code = await runner.run()

    stdout, stderr = reporter_streams
    assert exit_code == EXIT_SUCCESS
    assert stdout.getvalue().startswith("Waiting....Page compiled and loaded.\n")
    assert stdout.getvalue().endswith("Testing popup.\nSUCCESS\n")
    assert stderr.getvalue() == ""
    assert harness_config.screenshot_path.read_bytes() == PNG_BYTES
    assert session.url == harness_config.app.url
    assert session.closed

    supervisor, = supervisors
    assert [p.name for p in supervisor.processes] == ["server", "driver"]
    assert all_stopped(supervisor)


@pytest.mark.asyncio
async def test_screenshot_is_taken_before_scenarios(
    harness_config, reporter, reporter_streams, session_factory, supervisor_factory
):
    runner = SanityCheckRunner(
        harness_config,
        reporter=reporter,
        supervisor_factory=supervisor_factory,
        session_factory=session_factory(FakeGallerySession()),
    )

    await runner.run()

    lines = reporter_streams[0].getvalue().splitlines()
    assert lines[1] == f"Screenshot taken: {harness_config.screenshot_path}"
    assert lines[2] == "Testing button."


@pytest.mark.asyncio
async def test_missing_driver_exits_with_hint(
    harness_config, reporter, reporter_streams, supervisor_factory, supervisors
):
    config = dataclasses.replace(
        harness_config,
        driver=dataclasses.replace(harness_config.driver, command=("definitely-missing-chromedriver",)),
    )
    runner = SanityCheckRunner(
        config,
        reporter=reporter,
        supervisor_factory=supervisor_factory,
        session_factory=unreachable_session_factory,
    )

    exit_code = await runner.run()

    stdout, stderr = reporter_streams
    assert exit_code == EXIT_DRIVER_MISSING
    assert "Install chromedriver" in stderr.getvalue()
    assert "SUCCESS" not in stdout.getvalue()
    assert not config.screenshot_path.exists()

    supervisor, = supervisors
    assert [p.name for p in supervisor.processes] == ["server"]
    assert all_stopped(supervisor)


@pytest.mark.asyncio
async def test_missing_templated_driver_exits_with_hint(
    harness_config, reporter, reporter_streams, supervisor_factory
):
    driver = dataclasses.replace(
        harness_config.driver, command=("missing-chromedriver-{driver_port}", "--port={driver_port}")
    )
    runner = SanityCheckRunner(
        dataclasses.replace(harness_config, driver=driver),
        reporter=reporter,
        supervisor_factory=supervisor_factory,
        session_factory=unreachable_session_factory,
    )

    assert await runner.run() == EXIT_DRIVER_MISSING
    assert "Install chromedriver" in reporter_streams[1].getvalue()


@pytest.mark.asyncio
async def test_browser_profile_is_temporary(
    harness_config, reporter, session_factory, supervisor_factory, supervisors, tmp_path, monkeypatch
):
    monkeypatch.chdir(tmp_path)
    driver = dataclasses.replace(
        harness_config.driver,
        command=tuple(harness_config.driver.command) + ("--user-data-dir={profile_dir}",),
    )
    runner = SanityCheckRunner(
        dataclasses.replace(harness_config, driver=driver),
        reporter=reporter,
        supervisor_factory=supervisor_factory,
        session_factory=session_factory(FakeGallerySession()),
    )

    assert await runner.run() == EXIT_SUCCESS

    driver_process = supervisors[0].processes[1]
    profile_dir = Path(driver_process.command[-1].split("=", 1)[1])
    assert profile_dir.parent == Path(tempfile.gettempdir())
    assert not profile_dir.exists()
    assert sorted(p.name for p in tmp_path.iterdir()) == ["screenshot.png"]


@pytest.mark.asyncio
async def test_custom_install_hint(harness_config, reporter, reporter_streams, supervisor_factory):
    driver = dataclasses.replace(
        harness_config.driver,
        command=("definitely-missing-chromedriver",),
        install_hint="Run ./tool/install_driver.sh",
    )
    runner = SanityCheckRunner(
        dataclasses.replace(harness_config, driver=driver),
        reporter=reporter,
        supervisor_factory=supervisor_factory,
        session_factory=unreachable_session_factory,
    )

    assert await runner.run() == EXIT_DRIVER_MISSING
    assert reporter_streams[1].getvalue() == "Run ./tool/install_driver.sh\n"


@pytest.mark.asyncio
async def test_missing_server_propagates(harness_config, reporter, supervisor_factory, supervisors):
    config = dataclasses.replace(
        harness_config,
        app=dataclasses.replace(harness_config.app, command=("definitely-missing-server",)),
    )
    runner = SanityCheckRunner(
        config,
        reporter=reporter,
        supervisor_factory=supervisor_factory,
        session_factory=unreachable_session_factory,
    )

    with pytest.raises(SpawnError) as exc_info:
        await runner.run()

    assert exc_info.value.executable == "definitely-missing-server"
    assert supervisors[0].processes == []


@pytest.mark.asyncio
async def test_scenario_failure_propagates_after_cleanup(
    harness_config, reporter, reporter_streams, session_factory, supervisor_factory, supervisors
):
    session = FakeGallerySession(count_step=2)
    runner = SanityCheckRunner(
        harness_config,
        reporter=reporter,
        supervisor_factory=supervisor_factory,
        session_factory=session_factory(session),
    )

    with pytest.raises(ScenarioAssertionError):
        await runner.run()

    assert "SUCCESS" not in reporter_streams[0].getvalue()
    assert session.closed
    assert all_stopped(supervisors[0])


@pytest.mark.asyncio
async def test_page_that_never_loads_times_out(
    harness_config, reporter, session_factory, supervisor_factory, supervisors
):
    config = dataclasses.replace(
        harness_config,
        readiness=dataclasses.replace(harness_config.readiness, timeout=0.05),
    )
    session = FakeGallerySession(load_after=10_000)
    runner = SanityCheckRunner(
        config,
        reporter=reporter,
        supervisor_factory=supervisor_factory,
        session_factory=session_factory(session),
    )

    with pytest.raises(WaitTimeoutError):
        await runner.run()

    assert session.closed
    assert all_stopped(supervisors[0])


def test_run_sanity_check_returns_exit_code(harness_config, reporter, session_factory, supervisor_factory):
    exit_code = run_sanity_check(
        harness_config,
        reporter=reporter,
        supervisor_factory=supervisor_factory,
        session_factory=session_factory(FakeGallerySession()),
    )

    assert exit_code == EXIT_SUCCESS
