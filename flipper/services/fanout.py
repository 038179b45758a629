from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from typing import TypeVar, cast

T = TypeVar("T")
R = TypeVar("R")

ProgressCallback = Callable[[int], None]


async def gather_with_progress(
    items: Sequence[T],
    call: Callable[[T], Awaitable[R]],
    *,
    on_error: Callable[[T, Exception], R],
    progress: ProgressCallback | None = None,
    concurrency: int = 5,
) -> list[R]:
    """Run ``call`` for every item with bounded concurrency.

    Results keep input order. A failing call is replaced by ``on_error(item, exc)``
    and never aborts the batch. ``progress`` receives a non-decreasing percentage
    after each resolution and reaches 100 only once every call has resolved.
    """
    total = len(items)
    if total == 0:
        if progress is not None:
            progress(100)
        return []

    sem = asyncio.Semaphore(max(1, concurrency))

    async def _one(idx: int, item: T) -> tuple[int, R]:
        async with sem:
            try:
                return idx, await call(item)
            except Exception as exc:
                return idx, on_error(item, exc)

    results: list[R | None] = [None] * total
    done = 0
    for fut in asyncio.as_completed([_one(i, item) for i, item in enumerate(items)]):
        idx, value = await fut
        results[idx] = value
        done += 1
        if progress is not None:
            progress(done * 100 // total)
    return cast(list[R], results)
