# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Polling utilities shared by the readiness poll, driver startup and the
# animated-transition checks of the gallery scenarios.
#
# Key Features:
#   - Fixed-interval polling on the event loop (every check is an await point)
#   - Optional deadline (None polls forever)
#   - Per-retry callback for progress reporting
#   - Selected exception types are treated as "not yet"
#
# Usage:
#   result = await poll_until(check, WaitConfig(interval=0.5, timeout=10))
#
# ================================================================================

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional, Tuple, Type, TypeVar

from loguru import logger


T = TypeVar('T')


@dataclass(frozen=True)
class WaitConfig:
    """
    Configuration for wait operations.

    Attributes:
        interval: Seconds to sleep between attempts
        timeout: Total timeout in seconds, None for no deadline
    """
    interval: float = 1.0
    timeout: Optional[float] = None


class WaitTimeoutError(TimeoutError):
    """Raised when a wait operation times out."""

    def __init__(self, description: str, elapsed: float, last_error: Optional[BaseException] = None):
        message = f"Timeout after {elapsed:.1f}s waiting for: {description}"
        if last_error is not None:
            message += f" (last error: {last_error})"
        super().__init__(message)
        self.description = description
        self.elapsed = elapsed
        self.last_error = last_error


async def poll_until(
    check_fn: Callable[[], Awaitable[Tuple[bool, T]]],
    config: WaitConfig,
    description: str = "Waiting for condition",
    retry_on: Tuple[Type[BaseException], ...] = (),
    on_retry: Optional[Callable[[int], None]] = None,
) -> T:
    """
    Poll an async check until it reports success.

    Args:
        check_fn: Coroutine function returning (success, result)
        config: Interval and deadline
        description: Human-readable description for logging
        retry_on: Exception types that count as "condition not met"
        on_retry: Called with the attempt number before each sleep

    Returns:
        Result from check_fn when successful

    Raises:
        WaitTimeoutError: If the deadline passes without success. When the
            last attempt failed with one of ``retry_on`` that exception is
            chained as the cause.
    """
    start_time = time.monotonic()
    attempt = 0
    last_error: Optional[BaseException] = None

    while True:
        attempt += 1
        try:
            success, result = await check_fn()
            last_error = None
        except retry_on as e:
            success, result = False, None
            last_error = e

        if success:
            if attempt > 1:
                logger.debug(
                    f"Wait successful after {attempt} attempts "
                    f"({time.monotonic() - start_time:.1f}s): {description}"
                )
            return result

        elapsed = time.monotonic() - start_time
        if config.timeout is not None and elapsed + config.interval > config.timeout:
            # One last look once the deadline is reached
            if elapsed < config.timeout:
                await asyncio.sleep(config.timeout - elapsed)
                try:
                    success, result = await check_fn()
                    if success:
                        return result
                except retry_on as e:
                    last_error = e
            elapsed = time.monotonic() - start_time
            logger.debug(f"Giving up after {attempt} attempts: {description}")
            raise WaitTimeoutError(description, elapsed, last_error) from last_error

        if on_retry is not None:
            on_retry(attempt)
        await asyncio.sleep(config.interval)
