from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from ...clients.gemini import infer_recipe
from ...clients.hypixel import MarketplaceError, get_all_listings, get_bazaar_quotes
from ...config import settings
from ...logging import get_logger
from ...models.flips import CraftingFlip
from ...models.market import CommodityQuote
from ...services.auction import AnalysisCandidate, AnalysisCandidateConfig, select_analysis_candidates
from ...services.craft import CraftFlipConfig, find_crafting_flips
from ...services.fanout import ProgressCallback
from ..streaming import ndjson_response

router = APIRouter(prefix="/flips", tags=["crafting"])
_log = get_logger()


async def _inputs() -> tuple[list[AnalysisCandidate], dict[str, CommodityQuote]]:
    try:
        listings = await get_all_listings(settings.ANALYSIS_MAX_PAGES)
        quotes = await get_bazaar_quotes()
    except MarketplaceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return select_analysis_candidates(listings, AnalysisCandidateConfig.from_settings()), quotes


@router.get("/crafting")
async def crafting_flips() -> dict[str, Any]:
    candidates, quotes = await _inputs()

    def _progress(pct: int) -> None:
        _log.debug("crafting_progress", progress=pct)

    flips = await find_crafting_flips(
        candidates, infer_recipe, quotes, CraftFlipConfig.from_settings(), progress=_progress
    )
    return {"count": len(flips), "items": [f.model_dump(mode="json") for f in flips]}


@router.get("/crafting/stream")
async def crafting_flips_stream() -> StreamingResponse:
    """NDJSON: one {"progress": pct} line per resolved recipe, then the result line."""
    candidates, quotes = await _inputs()

    async def _run(progress: ProgressCallback) -> list[CraftingFlip]:
        return await find_crafting_flips(
            candidates, infer_recipe, quotes, CraftFlipConfig.from_settings(), progress=progress
        )

    return ndjson_response(_run)
