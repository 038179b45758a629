from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException

from ...clients.hypixel import MarketplaceError, get_all_listings, get_bazaar_quotes
from ...services.auction import AuctionFlipConfig, find_auction_flips
from ...services.bazaar import BazaarFlipConfig, find_bazaar_flips

router = APIRouter(prefix="/flips", tags=["flips"])


@router.get("/auction")
async def auction_flips() -> dict[str, Any]:
    """Underpriced fixed-price auctions in the current snapshot."""
    try:
        listings = await get_all_listings()
    except MarketplaceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    flips = find_auction_flips(listings, AuctionFlipConfig.from_settings())
    return {"count": len(flips), "items": [f.model_dump(mode="json") for f in flips]}


@router.get("/bazaar")
async def bazaar_flips() -> dict[str, Any]:
    try:
        quotes = await get_bazaar_quotes()
    except MarketplaceError as exc:
        raise HTTPException(status_code=502, detail=str(exc)) from exc
    flips = find_bazaar_flips(quotes.values(), BazaarFlipConfig.from_settings())
    return {"count": len(flips), "items": [f.model_dump(mode="json") for f in flips]}
