"""Bounded fan-out for per-chunk provider calls."""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Iterable, TypeVar

_ItemT = TypeVar("_ItemT")
_ResultT = TypeVar("_ResultT")


async def map_bounded(
    worker: Callable[[_ItemT], Awaitable[_ResultT]],
    items: Iterable[_ItemT],
    *,
    limit: int,
) -> list[_ResultT | BaseException]:
    """Apply *worker* to every item with at most *limit* calls in flight.

    Results come back in input order.  A failing call does not cancel its
    siblings; its exception takes the result's place so the caller can
    count failures.
    """
    if limit < 1:
        raise ValueError(f"limit must be at least 1, got {limit}")
    semaphore = asyncio.Semaphore(limit)

    async def _run(item: _ItemT) -> _ResultT:
        async with semaphore:
            return await worker(item)

    return await asyncio.gather(*(_run(item) for item in items), return_exceptions=True)
