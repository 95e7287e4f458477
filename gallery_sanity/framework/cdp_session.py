"""
================================================================================
CDP Session
================================================================================

RemoteSession backend that attaches Playwright to a Chrome instance started
with --remote-debugging-port.

Features:
    - Reuses the browser's default context and first tab when present
    - Element handles map onto Playwright ElementHandle objects
    - Playwright is stopped together with the session

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from loguru import logger
from playwright.async_api import (
    Browser,
    ElementHandle,
    Error as PlaywrightError,
    Page,
    Playwright,
    async_playwright,
)

from .remote_session import ElementNotFoundError, RemoteConnectionError, RemoteSession


class CdpSession(RemoteSession):
    """
    Playwright-driven session over the Chrome DevTools Protocol.

    Usage:
        >>> session = await CdpSession.connect("http://127.0.0.1:9222")
        >>> await session.navigate("http://localhost:8123/")
        >>> await session.close()
    """

    backend = "cdp"

    # Default viewport when the attached tab has none
    DEFAULT_VIEWPORT: Dict[str, int] = {"width": 1280, "height": 1024}

    def __init__(self, playwright: Playwright, browser: Browser, page: Page) -> None:
        super().__init__()
        self._playwright = playwright
        self._browser = browser
        self._page = page

    @classmethod
    async def connect(
        cls,
        endpoint: str,
        capabilities: Optional[Dict[str, Any]] = None,
    ) -> "CdpSession":
        """
        Attach to a running Chrome.

        Only the ``viewport`` entry of capabilities is honoured.

        Raises:
            RemoteConnectionError: If no DevTools endpoint answers
        """
        playwright = await async_playwright().start()
        try:
            browser = await playwright.chromium.connect_over_cdp(endpoint)
        except PlaywrightError as e:
            await playwright.stop()
            raise RemoteConnectionError(
                f"Cannot reach DevTools endpoint {endpoint}: {e.message}"
            ) from e
        except BaseException:
            await playwright.stop()
            raise

        try:
            context = browser.contexts[0] if browser.contexts else await browser.new_context()
            page = context.pages[0] if context.pages else await context.new_page()

            viewport = (capabilities or {}).get("viewport") or cls.DEFAULT_VIEWPORT
            if page.viewport_size is None:
                await page.set_viewport_size(viewport)
        except BaseException:
            try:
                await browser.close()
            finally:
                await playwright.stop()
            raise

        logger.debug(f"Attached to Chrome over CDP at {endpoint}")
        return cls(playwright, browser, page)

    async def _navigate(self, url: str) -> None:
        await self._page.goto(url, wait_until="load")

    async def _find_element(self, selector: str) -> ElementHandle:
        handle = await self._page.query_selector(selector)
        if handle is None:
            raise ElementNotFoundError(selector)
        return handle

    async def _find_elements(self, selector: str) -> List[ElementHandle]:
        return await self._page.query_selector_all(selector)

    async def _text(self, handle: ElementHandle) -> str:
        # inner_text applies CSS text-transform, like WebDriver's element text
        return await handle.inner_text()

    async def _attribute(self, handle: ElementHandle, name: str) -> Optional[str]:
        return await handle.get_attribute(name)

    async def _click(self, handle: ElementHandle) -> None:
        await handle.click()

    async def _send_keys(self, text: str) -> None:
        await self._page.keyboard.type(text)

    async def _screenshot(self) -> bytes:
        return await self._page.screenshot()

    async def _close(self) -> None:
        try:
            await self._browser.close()
        finally:
            await self._playwright.stop()


__all__ = [
    "CdpSession",
]
