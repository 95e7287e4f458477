import httpx
import pytest

from gallery_sanity.common import DriverConfig
from gallery_sanity.framework import remote_session
from gallery_sanity.framework.remote_session import (
    RemoteConnectionError,
    RemoteSessionError,
    SessionClosedError,
    open_session,
    probe_driver,
)
from testsuites.fakes import FakeGallerySession


DRIVER = DriverConfig(connect_timeout=0.5, connect_interval=0.01)


@pytest.fixture
def fake_connect(monkeypatch):
    """Replace the backend connect with one that fails a set number of times."""

    class Connector:
        def __init__(self):
            self.failures = 0
            self.calls = 0
            self.error = RemoteConnectionError("Connection refused")
            self.session = FakeGallerySession()

        async def __call__(self, driver):
            self.calls += 1
            if self.calls <= self.failures:
                raise self.error
            return self.session

    connector = Connector()
    monkeypatch.setattr(remote_session, "connect", connector)
    return connector


@pytest.mark.asyncio
async def test_open_session_retries_until_driver_listens(fake_connect):
    fake_connect.failures = 3

    async with open_session(DRIVER) as session:
        assert session is fake_connect.session

    assert fake_connect.calls == 4
    assert session.closed


@pytest.mark.asyncio
async def test_open_session_gives_up_at_deadline(fake_connect):
    fake_connect.failures = 10_000

    with pytest.raises(RemoteConnectionError, match="Connection refused"):
        async with open_session(DriverConfig(connect_timeout=0.05, connect_interval=0.01)):
            pass


@pytest.mark.asyncio
async def test_session_errors_are_not_retried(fake_connect):
    fake_connect.failures = 1
    fake_connect.error = RemoteSessionError("session not created", "session not created")

    with pytest.raises(RemoteSessionError, match="session not created"):
        async with open_session(DRIVER):
            pass

    assert fake_connect.calls == 1


@pytest.mark.asyncio
async def test_session_closed_when_body_raises(fake_connect):
    with pytest.raises(AssertionError):
        async with open_session(DRIVER) as session:
            raise AssertionError("scenario failed")

    assert session.close_calls == 1


@pytest.mark.asyncio
async def test_elements_unusable_after_close(gallery_session):
    button = await gallery_session.find_element("material-button")
    await gallery_session.close()
    await gallery_session.close()

    assert gallery_session.close_calls == 1
    with pytest.raises(SessionClosedError):
        await button.click()
    with pytest.raises(SessionClosedError):
        await gallery_session.send_keys(" ")


@pytest.mark.asyncio
async def test_elements_belong_to_their_session():
    first, second = FakeGallerySession(), FakeGallerySession()
    button = await first.find_element("material-button")

    with pytest.raises(SessionClosedError):
        await second.click(button)


@pytest.mark.asyncio
async def test_iter_elements_allows_early_exit(gallery_session):
    seen = []
    async for element in gallery_session.iter_elements("material-button"):
        seen.append(element.handle)
        if element.handle == "btn-open-basic":
            break

    assert seen == ["btn-count", "btn-open-basic"]


def status_transport(requests, response):
    def handler(request):
        requests.append(request.url.path)
        if isinstance(response, Exception):
            raise response
        return response

    return httpx.MockTransport(handler)


@pytest.mark.asyncio
async def test_driver_status_reads_chromedriver():
    requests = []
    response = httpx.Response(200, json={"value": {"ready": True, "message": "ChromeDriver ready"}})

    status = await probe_driver(DRIVER, transport=status_transport(requests, response))

    assert requests == ["/status"]
    assert status["value"]["ready"] is True


@pytest.mark.asyncio
async def test_driver_status_reads_devtools_version():
    requests = []
    response = httpx.Response(200, json={"Browser": "Chrome/130.0", "webSocketDebuggerUrl": "ws://x"})

    await probe_driver(
        DriverConfig(backend="cdp", endpoint="http://127.0.0.1:9222"),
        transport=status_transport(requests, response),
    )

    assert requests == ["/json/version"]


@pytest.mark.parametrize(
    "response",
    [
        httpx.ConnectError("Connection refused"),
        httpx.Response(503, text="starting"),
        httpx.Response(200, json={"value": {"ready": False, "message": "busy"}}),
        httpx.Response(200, text="not json"),
    ],
)
@pytest.mark.asyncio
async def test_driver_not_ready_is_a_connection_error(response):
    with pytest.raises(RemoteConnectionError):
        await probe_driver(DRIVER, transport=status_transport([], response))
