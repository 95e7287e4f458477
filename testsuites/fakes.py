"""
In-memory stand-in for a browser session on the component gallery.

FakeGallerySession implements the RemoteSession primitives against a tiny
model of the gallery DOM: a counter button, two tabs, a bounded input, a
basic dialog and an animated popup.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from gallery_sanity.framework.remote_session import ElementNotFoundError, RemoteSession
from gallery_sanity.scenarios.gallery_scenarios import (
    DIALOG_TEXT,
    POPUP_TEXT,
    TAB_1_CONTENT,
    TAB_2_CONTENT,
)


PNG_BYTES = b"\x89PNG\r\n\x1a\nfake-screenshot"

MAX_CHARS = 5


class FakeGallerySession(RemoteSession):
    """
    Args:
        load_after: Failed anchor lookups before the page counts as loaded
        popup_delay: Body reads before an opening/closing popup settles
        count_step: Increment per counter click (2 simulates a bug)
        labels: Override rendered button labels
    """

    backend = "fake"

    def __init__(
        self,
        load_after: int = 0,
        popup_delay: int = 0,
        count_step: int = 1,
        labels: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__()
        self.load_after = load_after
        self.popup_delay = popup_delay
        self.count_step = count_step
        self.labels = {
            "btn-count": "INCREASE",
            "btn-open-basic": "OPEN BASIC",
            "btn-close": "CLOSE",
            "btn-open-popup": "OPEN POPUP",
            **(labels or {}),
        }

        self.url: Optional[str] = None
        self.misses = 0
        self.count = 0
        self.tab = 1
        self.input_value = ""
        self.dialog_open = False
        self.popup_open = False
        self.popup_countdown = 0
        self.focused: Optional[str] = None
        self.clicks: List[str] = []
        self.keys: List[str] = []
        self.close_calls = 0

    # ---------------------------------------------------------------------
    # Model
    # ---------------------------------------------------------------------

    @property
    def loaded(self) -> bool:
        return self.misses >= self.load_after

    def _buttons(self) -> List[str]:
        buttons = ["btn-count", "btn-open-basic", "btn-open-popup"]
        if self.dialog_open:
            buttons.append("btn-close")
        return buttons

    def _popup_visible(self) -> bool:
        if self.popup_countdown > 0:
            self.popup_countdown -= 1
            # Mid-animation the popup still shows its previous state
            return not self.popup_open
        return self.popup_open

    def body(self) -> str:
        parts = [f"Count: {self.count}", TAB_1_CONTENT if self.tab == 1 else TAB_2_CONTENT]
        if self.dialog_open:
            parts.append(DIALOG_TEXT)
        if self._popup_visible():
            parts.append(POPUP_TEXT)
        return "\n".join(parts)

    # ---------------------------------------------------------------------
    # RemoteSession primitives
    # ---------------------------------------------------------------------

    async def _navigate(self, url: str) -> None:
        self.url = url

    async def _find_element(self, selector: str) -> Any:
        if selector != "body" and not self.loaded:
            self.misses += 1
            raise ElementNotFoundError(selector)
        handles = await self._find_elements(selector)
        if not handles:
            raise ElementNotFoundError(selector)
        return handles[0]

    async def _find_elements(self, selector: str) -> List[Any]:
        if selector == "body":
            return ["body"]
        if not self.loaded:
            return []
        if selector == "material-button":
            return self._buttons()
        if selector == "tab-button":
            return ["tab-1", "tab-2"]
        if selector == "input":
            return ["input-name", "input-max"]
        return []

    async def _text(self, handle: Any) -> str:
        if handle == "body":
            return self.body()
        return self.labels.get(handle, "")

    async def _attribute(self, handle: Any, name: str) -> Optional[str]:
        if name == "aria-label":
            return {"input-name": "Name", "input-max": "Max 5 chars"}.get(handle)
        if name == "aria-invalid" and handle == "input-max":
            return "true" if len(self.input_value) > MAX_CHARS else "false"
        if name == "aria-invalid" and handle == "input-name":
            return "false"
        return None

    async def _click(self, handle: Any) -> None:
        self.clicks.append(handle)
        self.focused = handle
        if handle == "btn-count":
            self.count += self.count_step
        elif handle == "tab-2":
            self.tab = 2
        elif handle == "tab-1":
            self.tab = 1
        elif handle == "btn-open-basic":
            self.dialog_open = True
        elif handle == "btn-close":
            self.dialog_open = False
        elif handle == "btn-open-popup":
            self.popup_open = True
            self.popup_countdown = self.popup_delay
            self.focused = "popup"

    async def _send_keys(self, text: str) -> None:
        self.keys.append(text)
        if self.focused == "input-max":
            self.input_value += text
        elif self.focused == "popup" and " " in text:
            self.popup_open = False
            self.popup_countdown = self.popup_delay
            self.focused = None

    async def _screenshot(self) -> bytes:
        return PNG_BYTES

    async def _close(self) -> None:
        self.close_calls += 1
