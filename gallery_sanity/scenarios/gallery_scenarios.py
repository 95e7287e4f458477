"""
================================================================================
Gallery Scenarios
================================================================================

The fixed interaction script run against the live gallery.

Order matters: each scenario starts from the DOM state the previous one left
behind (the counter stays at 1, the second tab stays selected, ...). Every
scenario is fail-fast; the first failed expectation ends the run.

Author: Automation Team
License: MIT
================================================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional

import allure
from loguru import logger

from gallery_sanity.framework.remote_session import ElementReference
from gallery_sanity.pages.gallery_page import GalleryPage, ScenarioAssertionError


# Page content the scenarios rely on
COUNT_BEFORE = "Count: 0"
COUNT_AFTER = "Count: 1"
TAB_1_CONTENT = "These are the contents of Tab 1."
TAB_2_CONTENT = "Tab 2 contents, on the other hand, look thusly."
MAX_CHARS_LABEL = "Max 5 chars"
MAX_CHARS_INPUT = "123456"
DIALOG_TEXT = "Lorem ipsum dolor sit amet"
OPEN_DIALOG_LABEL = "OPEN BASIC"
CLOSE_DIALOG_LABEL = "CLOSE"
POPUP_TEXT = "Hello, I am a pop up!"
OPEN_POPUP_LABEL = "OPEN POPUP"
DISMISS_POPUP_KEYS = " "


@dataclass(frozen=True)
class Scenario:
    """
    One step of the script.

    Attributes:
        name: Short identifier used in logs and Allure
        label: Progress line printed when the scenario starts
        run: Coroutine function executing precondition, action, postcondition
    """
    name: str
    label: str
    run: Callable[[], Awaitable[None]]


class GalleryScenarios:
    """
    Builds and runs the gallery scenario script.

    Args:
        page: Gallery page object bound to an open session
        counter_button: The control found by the readiness poll
        announce: Receives each scenario's progress label
    """

    def __init__(
        self,
        page: GalleryPage,
        counter_button: ElementReference,
        announce: Optional[Callable[[str], None]] = None,
    ) -> None:
        self.page = page
        self.counter_button = counter_button
        self.announce = announce or (lambda label: None)

    def scenarios(self) -> List[Scenario]:
        return [
            Scenario("counter", "Testing button.", self.test_button),
            Scenario("tabs", "Testing tab.", self.test_tabs),
            Scenario("input", "Testing input.", self.test_max_char_input),
            Scenario("dialog", "Testing dialog.", self.test_dialog),
            Scenario("popup", "Testing popup.", self.test_popup),
        ]

    async def run_all(self) -> None:
        """Run every scenario in order, stopping at the first failure."""
        for scenario in self.scenarios():
            self.announce(scenario.label)
            logger.info(f"Scenario: {scenario.name}")
            with allure.step(scenario.label):
                await scenario.run()

    # =========================================================================
    # Scenarios
    # =========================================================================

    async def test_button(self) -> None:
        await self.page.ensure_contains(COUNT_BEFORE)
        await self.counter_button.click()
        await self.page.ensure_contains(COUNT_AFTER)

    async def test_tabs(self) -> None:
        await self.page.ensure_contains(TAB_1_CONTENT)
        await self.page.ensure_not_contains(TAB_2_CONTENT)

        second_tab = await self.page.nth_tab(2)
        await second_tab.click()

        await self.page.ensure_not_contains(TAB_1_CONTENT)
        await self.page.ensure_contains(TAB_2_CONTENT)

    async def test_max_char_input(self) -> None:
        max_char_input = await self.page.find_input(MAX_CHARS_LABEL)

        async def assert_validity(valid: bool) -> None:
            expected = "false" if valid else "true"
            if await max_char_input.attribute("aria-invalid") != expected:
                raise ScenarioAssertionError(
                    f"The {MAX_CHARS_LABEL!r} input element should be "
                    f"{'valid' if valid else 'invalid'} at this point.",
                    "input_validity",
                    f"aria-invalid={expected}",
                )

        await assert_validity(True)

        await max_char_input.click()
        await self.page.session.send_keys(MAX_CHARS_INPUT)

        await assert_validity(False)

    async def test_dialog(self) -> None:
        await self.page.ensure_not_contains(DIALOG_TEXT)
        await self.page.click_button(OPEN_DIALOG_LABEL)
        await self.page.ensure_contains(DIALOG_TEXT)
        await self.page.click_button(CLOSE_DIALOG_LABEL)
        await self.page.ensure_not_contains(DIALOG_TEXT)

    async def test_popup(self) -> None:
        await self.page.ensure_not_contains(POPUP_TEXT)
        await self.page.click_button(OPEN_POPUP_LABEL)
        await self.page.wait_until_contains(POPUP_TEXT)

        # The popup has focus; a key press dismisses it
        await self.page.session.send_keys(DISMISS_POPUP_KEYS)
        await self.page.wait_until_not_contains(POPUP_TEXT)


__all__ = [
    "GalleryScenarios",
    "Scenario",
]
