"""
Bounded asyncio fan-out.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar

T = TypeVar("T")
R = TypeVar("R")


async def map_limit(
    items: Sequence[T],
    limit: int,
    mapper: Callable[[T, int], Awaitable[R]],
) -> list[R]:
    """
    Map ``mapper`` over ``items`` with at most ``limit`` calls in flight.

    Workers claim the next index from a shared cursor until the list is
    exhausted; results land in a pre-sized list at the item's index, so the
    output order matches ``items`` whatever the completion order. The first
    exception cancels the remaining workers and propagates.
    """
    results: list[R] = [None] * len(items)  # type: ignore[list-item]
    if not items:
        return results

    cursor = 0

    async def worker() -> None:
        nonlocal cursor
        while True:
            # No await between the read and the increment: claiming is atomic.
            current = cursor
            cursor += 1
            if current >= len(items):
                return
            results[current] = await mapper(items[current], current)

    workers = [asyncio.ensure_future(worker()) for _ in range(max(1, min(limit, len(items))))]
    try:
        await asyncio.gather(*workers)
    except BaseException:
        for task in workers:
            task.cancel()
        await asyncio.gather(*workers, return_exceptions=True)
        raise
    return results


__all__ = ["map_limit"]
