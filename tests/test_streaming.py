from __future__ import annotations

import asyncio
import json

import pytest

from flipper.api.streaming import ndjson_events
from flipper.models.flips import BazaarFlip
from flipper.services.fanout import ProgressCallback


def _flip() -> BazaarFlip:
    return BazaarFlip(
        id="ENCHANTED_DIAMOND",
        item_name="Enchanted Diamond",
        buy_price=1_000,
        sell_price=1_500,
        profit=500,
        buy_volume=5_000,
        sell_volume=4_000,
    )


@pytest.mark.asyncio
async def test_progress_lines_then_result() -> None:
    async def _run(progress: ProgressCallback) -> list[BazaarFlip]:
        progress(50)
        progress(100)
        return [_flip()]

    lines = [json.loads(line) async for line in ndjson_events(_run)]

    assert lines[:2] == [{"progress": 50}, {"progress": 100}]
    assert lines[2]["count"] == 1
    assert lines[2]["items"][0]["id"] == "ENCHANTED_DIAMOND"


@pytest.mark.asyncio
async def test_early_close_cancels_the_pass() -> None:
    started = asyncio.Event()
    cancelled = asyncio.Event()

    async def _run(progress: ProgressCallback) -> list[BazaarFlip]:
        progress(10)
        started.set()
        try:
            await asyncio.sleep(3600)
        except asyncio.CancelledError:
            cancelled.set()
            raise
        return []

    events = ndjson_events(_run)
    first = await events.__anext__()
    assert json.loads(first) == {"progress": 10}
    await started.wait()

    await events.aclose()

    assert cancelled.is_set()


@pytest.mark.asyncio
async def test_pass_errors_reach_the_consumer() -> None:
    async def _run(progress: ProgressCallback) -> list[BazaarFlip]:
        raise RuntimeError("oracle down")

    with pytest.raises(RuntimeError, match="oracle down"):
        [line async for line in ndjson_events(_run)]
