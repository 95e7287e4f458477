"""
================================================================================
Gallery Page Object
================================================================================

Page object for the component gallery.

Provides:
    - Whole-page text assertions (exact substring, no normalization)
    - Polling variants for animated transitions
    - Control lookup by visible label or accessible name
    - Screenshot capture

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Tuple

import allure
from loguru import logger

from gallery_sanity.common import ScenarioConfig
from gallery_sanity.framework.remote_session import (
    ElementNotFoundError,
    ElementReference,
    RemoteSession,
)
from gallery_sanity.framework.wait_helpers import WaitConfig, WaitTimeoutError, poll_until


class ScenarioAssertionError(AssertionError):
    """
    A DOM-content expectation did not hold.

    Attributes:
        check: Name of the failed check (e.g. "ensure_contains")
        expected: The text or value that was expected
    """

    def __init__(self, message: str, check: str, expected: str):
        super().__init__(message)
        self.check = check
        self.expected = expected


def normalize_label(text: Optional[str]) -> str:
    """
    Canonical form of a control label: collapsed whitespace, casefolded.

    Rendered text may be upper-cased by CSS text-transform (WebDriver and
    Playwright both report the transformed text), so comparisons ignore case.
    """
    if text is None:
        return ""
    return " ".join(text.split()).casefold()


def labels_match(actual: Optional[str], expected: str) -> bool:
    return normalize_label(actual) == normalize_label(expected)


class GalleryPage:
    """
    The gallery application as seen through a remote session.

    Usage:
        page = GalleryPage(session, "http://localhost:8123/")
        await page.open()
        await page.ensure_contains("Count: 0")
    """

    BODY_SELECTOR = "body"
    BUTTON_SELECTOR = "material-button"
    TAB_SELECTOR = "tab-button"
    INPUT_SELECTOR = "input"

    def __init__(
        self,
        session: RemoteSession,
        url: str,
        config: Optional[ScenarioConfig] = None,
    ) -> None:
        self.session = session
        self.url = url
        self.config = config or ScenarioConfig()
        self._body: Optional[ElementReference] = None

    async def open(self) -> None:
        with allure.step(f"Navigate to {self.url}"):
            await self.session.navigate(self.url)
            logger.debug(f"Navigated to: {self.url}")

    # =========================================================================
    # Body text assertions
    # =========================================================================

    async def body_text(self) -> str:
        """Current text of the whole page."""
        if self._body is None:
            self._body = await self.session.find_element(self.BODY_SELECTOR)
        return await self._body.text()

    async def contains(self, text: str) -> bool:
        return text in await self.body_text()

    async def ensure_contains(self, text: str) -> None:
        """
        Raises:
            ScenarioAssertionError: If the page text does not include ``text``
        """
        if not await self.contains(text):
            raise ScenarioAssertionError(
                f"expected body to contain {text!r}", "ensure_contains", text
            )

    async def ensure_not_contains(self, text: str) -> None:
        """
        Raises:
            ScenarioAssertionError: If the page text includes ``text``
        """
        if await self.contains(text):
            raise ScenarioAssertionError(
                f"expected body not to contain {text!r}", "ensure_not_contains", text
            )

    async def wait_until_contains(self, text: str) -> None:
        """Like ensure_contains, but allows a transition to settle first."""
        await self._wait_for_presence(text, present=True)

    async def wait_until_not_contains(self, text: str) -> None:
        """Like ensure_not_contains, but allows a transition to settle first."""
        await self._wait_for_presence(text, present=False)

    async def _wait_for_presence(self, text: str, present: bool) -> None:
        async def check() -> Tuple[bool, None]:
            return (await self.contains(text)) == present, None

        try:
            await poll_until(
                check,
                WaitConfig(
                    interval=self.config.poll_interval,
                    timeout=self.config.transition_timeout,
                ),
                description=f"body {'to contain' if present else 'not to contain'} {text!r}",
            )
        except WaitTimeoutError as e:
            if present:
                raise ScenarioAssertionError(
                    f"expected body to contain {text!r} within "
                    f"{self.config.transition_timeout}s",
                    "wait_until_contains",
                    text,
                ) from e
            raise ScenarioAssertionError(
                f"expected body not to contain {text!r} within "
                f"{self.config.transition_timeout}s",
                "wait_until_not_contains",
                text,
            ) from e

    # =========================================================================
    # Control lookup
    # =========================================================================

    async def find_button(self, label: str) -> ElementReference:
        """
        Find the gallery button whose visible label matches ``label``.

        Raises:
            ElementNotFoundError: If no button carries that label
        """
        async for button in self.session.iter_elements(self.BUTTON_SELECTOR):
            if labels_match(await button.text(), label):
                return button
        raise ElementNotFoundError(
            self.BUTTON_SELECTOR, f"No {self.BUTTON_SELECTOR} labelled {label!r}"
        )

    async def click_button(self, label: str) -> None:
        with allure.step(f"Click button: {label}"):
            button = await self.find_button(label)
            await button.click()

    async def find_input(self, accessible_name: str) -> ElementReference:
        """
        Find the input whose aria-label equals ``accessible_name``.

        Raises:
            ElementNotFoundError: If no input has that accessible name
        """
        async for field in self.session.iter_elements(self.INPUT_SELECTOR):
            if await field.attribute("aria-label") == accessible_name:
                return field
        raise ElementNotFoundError(
            self.INPUT_SELECTOR, f"No {self.INPUT_SELECTOR} with aria-label {accessible_name!r}"
        )

    async def nth_tab(self, index: int) -> ElementReference:
        """
        Return the tab selector at 1-based ``index``.

        Raises:
            ElementNotFoundError: If there are fewer tabs
        """
        tabs = await self.session.find_elements(self.TAB_SELECTOR)
        if len(tabs) < index:
            raise ElementNotFoundError(
                self.TAB_SELECTOR, f"Expected at least {index} {self.TAB_SELECTOR}, found {len(tabs)}"
            )
        return tabs[index - 1]

    # =========================================================================
    # Screenshot
    # =========================================================================

    async def screenshot(self, path: Path) -> Path:
        """
        Capture the viewport to ``path`` and attach it to Allure.

        Returns:
            Path to the saved screenshot
        """
        png = await self.session.screenshot()
        path = Path(path)
        if path.parent != Path("."):
            path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(png)
        allure.attach(png, name=path.stem, attachment_type=allure.attachment_type.PNG)
        logger.debug(f"Screenshot saved: {path}")
        return path


__all__ = [
    "GalleryPage",
    "ScenarioAssertionError",
    "labels_match",
    "normalize_label",
]
