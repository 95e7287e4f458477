"""
================================================================================
Remote Session
================================================================================

Backend-neutral client interface for a live browser session.

A RemoteSession is opened against an already running automation driver
(chromedriver or a Chrome DevTools endpoint), and hands out ElementReference
handles that are only valid while the session is open.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx
from loguru import logger

from gallery_sanity.common import DriverConfig

from .wait_helpers import WaitConfig, WaitTimeoutError, poll_until


class RemoteSessionError(Exception):
    """Base exception for remote automation errors."""

    def __init__(self, message: str, error: Optional[str] = None):
        super().__init__(message)
        self.error = error


class RemoteConnectionError(RemoteSessionError, ConnectionError):
    """Raised when the remote endpoint is unreachable or refuses a session."""
    pass


class ElementNotFoundError(RemoteSessionError):
    """Raised when no element matches a selector at the time of the call."""

    def __init__(self, selector: str, message: Optional[str] = None):
        super().__init__(message or f"No element matches selector: {selector!r}", "no such element")
        self.selector = selector


class SessionClosedError(RemoteSessionError):
    """Raised when a session, or an element of it, is used after close()."""
    pass


class ElementReference:
    """
    Opaque handle to a DOM node, scoped to the session that located it.

    Usage:
        >>> button = await session.find_element("material-button")
        >>> await button.click()
        >>> print(await button.text())
    """

    __slots__ = ("session", "handle", "selector")

    def __init__(self, session: "RemoteSession", handle: Any, selector: str):
        self.session = session
        self.handle = handle
        self.selector = selector

    async def text(self) -> str:
        return await self.session.text(self)

    async def attribute(self, name: str) -> Optional[str]:
        return await self.session.attribute(self, name)

    async def click(self) -> None:
        await self.session.click(self)

    def __repr__(self) -> str:
        return f"<ElementReference {self.selector!r}>"


class RemoteSession(ABC):
    """
    Live connection to one browser instance.

    Subclasses implement the underscore-prefixed primitives; the public
    methods guard against use after close() and log at DEBUG level.
    """

    backend: str = ""

    def __init__(self) -> None:
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _ensure_open(self) -> None:
        if self._closed:
            raise SessionClosedError("Remote session is closed", "invalid session id")

    def _ensure_owned(self, element: ElementReference) -> None:
        self._ensure_open()
        if element.session is not self:
            raise SessionClosedError(
                f"{element!r} belongs to a different session", "invalid session id"
            )

    async def __aenter__(self) -> "RemoteSession":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Public API
    # -------------------------------------------------------------------------

    async def navigate(self, url: str) -> None:
        self._ensure_open()
        logger.debug(f"[{self.backend}] navigate {url}")
        await self._navigate(url)

    async def find_element(self, selector: str) -> ElementReference:
        """
        Locate the first element matching a CSS selector.

        Raises:
            ElementNotFoundError: If nothing matches right now
        """
        self._ensure_open()
        handle = await self._find_element(selector)
        return ElementReference(self, handle, selector)

    async def find_elements(self, selector: str) -> List[ElementReference]:
        """Locate all elements matching a CSS selector, possibly none."""
        self._ensure_open()
        handles = await self._find_elements(selector)
        logger.debug(f"[{self.backend}] {len(handles)} element(s) match {selector!r}")
        return [ElementReference(self, handle, selector) for handle in handles]

    async def iter_elements(self, selector: str) -> AsyncIterator[ElementReference]:
        """Iterate over matching elements; callers may stop early."""
        for element in await self.find_elements(selector):
            self._ensure_open()
            yield element

    async def text(self, element: ElementReference) -> str:
        self._ensure_owned(element)
        return await self._text(element.handle)

    async def attribute(self, element: ElementReference, name: str) -> Optional[str]:
        self._ensure_owned(element)
        return await self._attribute(element.handle, name)

    async def click(self, element: ElementReference) -> None:
        self._ensure_owned(element)
        logger.debug(f"[{self.backend}] click {element!r}")
        await self._click(element.handle)

    async def send_keys(self, text: str) -> None:
        """Type text into whichever element currently has focus."""
        self._ensure_open()
        logger.debug(f"[{self.backend}] send keys {text!r}")
        await self._send_keys(text)

    async def screenshot(self) -> bytes:
        """Capture the viewport as PNG bytes."""
        self._ensure_open()
        return await self._screenshot()

    async def close(self) -> None:
        """End the session. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._close()
        logger.debug(f"[{self.backend}] session closed")

    # -------------------------------------------------------------------------
    # Backend primitives
    # -------------------------------------------------------------------------

    @abstractmethod
    async def _navigate(self, url: str) -> None: ...

    @abstractmethod
    async def _find_element(self, selector: str) -> Any: ...

    @abstractmethod
    async def _find_elements(self, selector: str) -> List[Any]: ...

    @abstractmethod
    async def _text(self, handle: Any) -> str: ...

    @abstractmethod
    async def _attribute(self, handle: Any, name: str) -> Optional[str]: ...

    @abstractmethod
    async def _click(self, handle: Any) -> None: ...

    @abstractmethod
    async def _send_keys(self, text: str) -> None: ...

    @abstractmethod
    async def _screenshot(self) -> bytes: ...

    @abstractmethod
    async def _close(self) -> None: ...


# =============================================================================
# Session factory
# =============================================================================

# Endpoint answering once the driver accepts sessions, per backend
STATUS_PATHS = {
    "webdriver": "/status",
    "cdp": "/json/version",
}


async def probe_driver(
    driver: DriverConfig,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    """
    Ask the driver whether it is ready for a new session.

    Args:
        driver: Driver settings (backend, endpoint, request_timeout)
        transport: Optional httpx transport (used by tests)

    Returns:
        The decoded status document

    Raises:
        RemoteConnectionError: If the driver is not listening or not ready yet
    """
    path = STATUS_PATHS.get(driver.backend, "/status")
    async with httpx.AsyncClient(
        base_url=driver.endpoint,
        timeout=httpx.Timeout(driver.request_timeout),
        transport=transport,
    ) as client:
        try:
            response = await client.get(path)
        except httpx.TransportError as e:
            raise RemoteConnectionError(
                f"Cannot reach {driver.backend} endpoint {driver.endpoint}: {e}"
            ) from e

    if response.status_code >= 400:
        raise RemoteConnectionError(
            f"{driver.endpoint}{path.lstrip('/')} answered HTTP {response.status_code}"
        )
    try:
        status = response.json()
    except ValueError as e:
        raise RemoteConnectionError(f"{driver.endpoint} returned a non-JSON status") from e

    # chromedriver reports {"value": {"ready": false}} while it cannot take sessions
    value = status.get("value") if isinstance(status, dict) else None
    if isinstance(value, dict) and value.get("ready") is False:
        raise RemoteConnectionError(
            f"{driver.backend} endpoint not ready: {value.get('message', '')}".rstrip(": ")
        )
    return status


async def connect(driver: DriverConfig) -> RemoteSession:
    """
    Open a session with the configured backend, without startup retries.

    Raises:
        RemoteConnectionError: If the endpoint is unreachable or not ready
    """
    await probe_driver(driver)

    if driver.backend == "cdp":
        from .cdp_session import CdpSession

        return await CdpSession.connect(driver.endpoint, driver.capabilities)

    from .webdriver_session import WebDriverSession

    return await WebDriverSession.connect(driver.endpoint, driver.capabilities)


@asynccontextmanager
async def open_session(driver: DriverConfig) -> AsyncIterator[RemoteSession]:
    """
    Connect to a freshly started driver and close the session on exit.

    The driver may still be binding its port, so RemoteConnectionError is
    retried every ``connect_interval`` seconds until ``connect_timeout``.

    Raises:
        RemoteConnectionError: If the driver is still unreachable at the deadline
    """

    async def attempt() -> tuple:
        return True, await connect(driver)

    try:
        session = await poll_until(
            attempt,
            WaitConfig(interval=driver.connect_interval, timeout=driver.connect_timeout),
            description=f"{driver.backend} session at {driver.endpoint}",
            retry_on=(RemoteConnectionError,),
        )
    except WaitTimeoutError as e:
        if isinstance(e.last_error, RemoteConnectionError):
            raise e.last_error
        raise RemoteConnectionError(str(e)) from e

    logger.info(f"Connected {driver.backend} session at {driver.endpoint}")
    try:
        yield session
    except BaseException:
        try:
            await session.close()
        except Exception as close_error:
            logger.warning(f"Failed to close session after error: {close_error}")
        raise
    else:
        await session.close()


__all__ = [
    "ElementNotFoundError",
    "ElementReference",
    "RemoteConnectionError",
    "RemoteSession",
    "RemoteSessionError",
    "SessionClosedError",
    "connect",
    "open_session",
    "probe_driver",
]
