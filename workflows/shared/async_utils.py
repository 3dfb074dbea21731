"""Async utilities for concurrent processing."""

import asyncio
from typing import Any, Awaitable, Callable, List, Sequence, TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def run_staggered(
    items: Sequence[T],
    worker: Callable[[int, T], Awaitable[R]],
    max_concurrent: int = 5,
    stagger: float = 0.0,
    return_exceptions: bool = True,
) -> List[Any]:
    """Run ``worker(index, item)`` for every item under a semaphore.

    Item *i* is admitted no earlier than ``i * stagger`` seconds after the
    call starts. Results come back in input order; with return_exceptions
    a failing worker yields its exception in place.
    """
    semaphore = asyncio.Semaphore(max_concurrent)

    async def limited(index: int, item: T) -> R:
        if index > 0 and stagger > 0:
            await asyncio.sleep(index * stagger)
        async with semaphore:
            return await worker(index, item)

    return await asyncio.gather(
        *[limited(i, item) for i, item in enumerate(items)],
        return_exceptions=return_exceptions,
    )
