from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException
from fastapi.responses import StreamingResponse

from ...clients.gemini import infer_value
from ...clients.hypixel import MarketplaceError, get_all_listings
from ...config import settings
from ...models.flips import TrendFlip
from ...services.auction import AnalysisCandidate, AnalysisCandidateConfig, select_analysis_candidates
from ...services.fanout import ProgressCallback
from ...services.trends import TrendConfig, find_trend_flips
from ..streaming import ndjson_response

router = APIRouter(prefix="/flips", tags=["trends"])


async def _candidates() -> list[AnalysisCandidate]:
    try:
        listings = await get_all_listings(settings.ANALYSIS_MAX_PAGES)
    except MarketplaceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    return select_analysis_candidates(listings, AnalysisCandidateConfig.from_settings())


@router.get("/trends")
async def trend_flips() -> dict[str, Any]:
    """Items the valuation oracle considers undervalued."""
    candidates = await _candidates()
    flips = await find_trend_flips(candidates, infer_value, TrendConfig.from_settings())
    return {"count": len(flips), "items": [f.model_dump(mode="json") for f in flips]}


@router.get("/trends/stream")
async def trend_flips_stream() -> StreamingResponse:
    """NDJSON: one {"progress": pct} line per valued item, then the result line."""
    candidates = await _candidates()

    async def _run(progress: ProgressCallback) -> list[TrendFlip]:
        return await find_trend_flips(candidates, infer_value, TrendConfig.from_settings(), progress=progress)

    return ndjson_response(_run)
