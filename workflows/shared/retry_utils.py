"""Retry utilities for async operations."""

import asyncio
import logging
from typing import Awaitable, Callable, Type, TypeVar

T = TypeVar("T")

logger = logging.getLogger(__name__)


async def with_retry(
    fn: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
    backoff_factor: float = 2.0,
    delay: float | None = None,
    retry_on: Type[Exception] | tuple[Type[Exception], ...] = Exception,
    error_message: str = "Operation failed after {attempts} attempts",
) -> T:
    """Execute async function with retry.

    Waits ``backoff_factor ** attempt`` seconds between attempts, or a fixed
    ``delay`` when one is given. Exceptions outside ``retry_on`` propagate
    immediately.

    Raises:
        RuntimeError: After max_attempts failures, chained to the last error
    """
    last_error = None
    for attempt in range(max_attempts):
        try:
            return await fn()
        except retry_on as e:
            last_error = e
            logger.debug(f"Attempt {attempt + 1}/{max_attempts} failed: {e}")
            if attempt < max_attempts - 1:
                wait_time = delay if delay is not None else backoff_factor**attempt
                await asyncio.sleep(wait_time)
    raise RuntimeError(error_message.format(attempts=max_attempts)) from last_error
