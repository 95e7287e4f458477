"""
================================================================================
WebDriver Session
================================================================================

RemoteSession backend on Selenium's Remote WebDriver, talking to a running
chromedriver.

Features:
    - Session created through webdriver.Remote with ChromeOptions built from
      the configured capabilities
    - Blocking Selenium calls run in a worker thread, one at a time
    - Selenium exceptions mapped onto the RemoteSession error hierarchy
    - Keyboard input through ActionChains, delivered to the focused element

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

import asyncio
from typing import Any, Callable, Dict, List, Optional, TypeVar

from loguru import logger
from selenium import webdriver
from selenium.common.exceptions import (
    InvalidSessionIdException,
    NoSuchElementException,
    NoSuchWindowException,
    WebDriverException,
)
from selenium.webdriver.chrome.options import Options as ChromeOptions
from selenium.webdriver.common.action_chains import ActionChains
from selenium.webdriver.common.by import By
from selenium.webdriver.remote.webelement import WebElement
from urllib3.exceptions import HTTPError as Urllib3HTTPError

from .remote_session import (
    ElementNotFoundError,
    RemoteConnectionError,
    RemoteSession,
    RemoteSessionError,
    SessionClosedError,
)


T = TypeVar("T")

CHROME_OPTIONS_KEY = "goog:chromeOptions"


def build_options(capabilities: Optional[Dict[str, Any]] = None) -> ChromeOptions:
    """
    Translate a W3C capabilities mapping into ChromeOptions.

    ``goog:chromeOptions.args`` become browser arguments; every other entry
    is set as a plain capability.
    """
    options = ChromeOptions()
    for key, value in (capabilities or {}).items():
        if key == CHROME_OPTIONS_KEY:
            for arg in (value or {}).get("args", []):
                options.add_argument(arg)
        else:
            options.set_capability(key, value)
    return options


def _translate(error: WebDriverException) -> RemoteSessionError:
    message = error.msg or type(error).__name__
    if isinstance(error, NoSuchElementException):
        return ElementNotFoundError("", message)
    if isinstance(error, (InvalidSessionIdException, NoSuchWindowException)):
        return SessionClosedError(message, "invalid session id")
    return RemoteSessionError(message, type(error).__name__)


class WebDriverSession(RemoteSession):
    """
    Selenium Remote WebDriver wrapped in the async RemoteSession interface.

    Usage:
        >>> session = await WebDriverSession.connect(
        ...     "http://127.0.0.1:9515/", {"browserName": "chrome"}
        ... )
        >>> await session.navigate("http://localhost:8123/")
        >>> await session.close()
    """

    backend = "webdriver"

    def __init__(self, driver: webdriver.Remote) -> None:
        super().__init__()
        self._driver = driver

    @property
    def session_id(self) -> Optional[str]:
        return self._driver.session_id

    @classmethod
    async def connect(
        cls,
        endpoint: str,
        capabilities: Optional[Dict[str, Any]] = None,
    ) -> "WebDriverSession":
        """
        Create a new browser session.

        Raises:
            RemoteConnectionError: If the driver cannot be reached
            RemoteSessionError: If the driver refuses to create a session
        """
        options = build_options(capabilities)
        try:
            driver = await asyncio.to_thread(
                webdriver.Remote, command_executor=endpoint, options=options
            )
        except (Urllib3HTTPError, OSError) as e:
            raise RemoteConnectionError(
                f"Cannot reach WebDriver endpoint {endpoint}: {e}"
            ) from e
        except WebDriverException as e:
            raise _translate(e) from e

        logger.debug(f"WebDriver session created: {driver.session_id}")
        return cls(driver)

    async def _call(self, fn: Callable[..., T], *args: Any) -> T:
        """Run one blocking Selenium call off the event loop."""
        try:
            return await asyncio.to_thread(fn, *args)
        except WebDriverException as e:
            raise _translate(e) from e
        except (Urllib3HTTPError, OSError) as e:
            raise RemoteConnectionError(f"Lost connection to WebDriver: {e}") from e

    # -------------------------------------------------------------------------
    # Backend primitives
    # -------------------------------------------------------------------------

    async def _navigate(self, url: str) -> None:
        await self._call(self._driver.get, url)

    async def _find_element(self, selector: str) -> WebElement:
        try:
            return await self._call(self._driver.find_element, By.CSS_SELECTOR, selector)
        except ElementNotFoundError as e:
            raise ElementNotFoundError(selector) from e

    async def _find_elements(self, selector: str) -> List[WebElement]:
        return await self._call(self._driver.find_elements, By.CSS_SELECTOR, selector)

    async def _text(self, handle: WebElement) -> str:
        return await self._call(lambda: handle.text) or ""

    async def _attribute(self, handle: WebElement, name: str) -> Optional[str]:
        return await self._call(handle.get_dom_attribute, name)

    async def _click(self, handle: WebElement) -> None:
        await self._call(handle.click)

    async def _send_keys(self, text: str) -> None:
        await self._call(lambda: ActionChains(self._driver).send_keys(text).perform())

    async def _screenshot(self) -> bytes:
        return await self._call(self._driver.get_screenshot_as_png)

    async def _close(self) -> None:
        await self._call(self._driver.quit)


__all__ = [
    "WebDriverSession",
    "build_options",
]
