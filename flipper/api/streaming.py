from __future__ import annotations

import asyncio
import contextlib
import json
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from typing import Any

from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from ..services.fanout import ProgressCallback

Pass = Callable[[ProgressCallback], Awaitable[Sequence[BaseModel]]]


async def ndjson_events(run: Pass) -> AsyncIterator[str]:
    """Yield {"progress": pct} lines while ``run`` works, then one result line.

    The pass runs in its own task. If the consumer goes away early the task is
    cancelled and awaited before the generator closes.
    """
    queue: asyncio.Queue[dict[str, Any] | None] = asyncio.Queue()

    async def _worker() -> None:
        try:
            flips = await run(lambda pct: queue.put_nowait({"progress": pct}))
            queue.put_nowait({"count": len(flips), "items": [f.model_dump(mode="json") for f in flips]})
        finally:
            queue.put_nowait(None)

    task = asyncio.create_task(_worker())
    try:
        while True:
            event = await queue.get()
            if event is None:
                break
            yield json.dumps(event) + "\n"
        await task
    finally:
        if not task.done():
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task


def ndjson_response(run: Pass) -> StreamingResponse:
    return StreamingResponse(ndjson_events(run), media_type="application/x-ndjson")
