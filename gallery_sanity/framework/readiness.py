"""
Readiness poll: block until the application under test has rendered.

The gallery compiles on first request, so the anchor element can take a long
time to appear. Each failed lookup emits a single "." so long waits stay
visible without flooding the output.
"""

from __future__ import annotations

from typing import Callable, Optional, Tuple

from loguru import logger

from gallery_sanity.common import ReadinessConfig

from .remote_session import ElementNotFoundError, ElementReference, RemoteSession
from .wait_helpers import WaitConfig, poll_until


ProgressWriter = Callable[[str], None]


def _discard(marker: str) -> None:
    pass


async def wait_for_element(
    session: RemoteSession,
    selector: str,
    config: Optional[ReadinessConfig] = None,
    progress: Optional[ProgressWriter] = None,
) -> ElementReference:
    """
    Poll for an element until it exists.

    Args:
        session: Open remote session, already navigated to the application
        selector: CSS selector of the anchor element
        config: Poll interval and deadline (timeout None waits forever)
        progress: Receives "Waiting.." once and "." per retry

    Returns:
        Reference to the first matching element

    Raises:
        WaitTimeoutError: If the deadline passes before the element appears
    """
    config = config or ReadinessConfig()
    write = progress or _discard

    async def lookup() -> Tuple[bool, ElementReference]:
        return True, await session.find_element(selector)

    write("Waiting..")
    element = await poll_until(
        lookup,
        WaitConfig(interval=config.interval, timeout=config.timeout),
        description=f"element {selector!r}",
        retry_on=(ElementNotFoundError,),
        on_retry=lambda attempt: write("."),
    )
    logger.info(f"Page compiled and loaded ({selector!r} present)")
    return element


__all__ = [
    "wait_for_element",
]
