from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, cast

import httpx
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import settings
from ..logging import get_logger
from ..models.market import CommodityQuote, Listing
from ..services.normalize import format_product_name

_log = get_logger()


class MarketplaceError(RuntimeError):
    """The marketplace could not produce a usable snapshot."""


@dataclass
class AuctionPage:
    page: int
    total_pages: int
    listings: list[Listing]


def _retryer() -> AsyncRetrying:
    return AsyncRetrying(
        reraise=True,
        stop=stop_after_attempt(settings.RETRY_MAX),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=3),
        retry=retry_if_exception_type(
            (httpx.ReadTimeout, httpx.ConnectTimeout, httpx.HTTPStatusError)
        ),
    )


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=str(settings.HYPIXEL_BASE).rstrip("/"),
        timeout=httpx.Timeout(10.0, read=20.0),
        headers={"User-Agent": settings.USER_AGENT},
        http2=True,
    )


async def _get_json(client: httpx.AsyncClient, path: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
    async for attempt in _retryer():
        with attempt:
            resp = await client.get(path, params=params)
            resp.raise_for_status()
            data = resp.json()
            if not isinstance(data, dict) or not data.get("success"):
                cause = data.get("cause") if isinstance(data, dict) else None
                raise MarketplaceError(cause or f"{path} request failed")
            return cast(dict[str, Any], data)
    raise MarketplaceError(f"{path} request failed")


def _parse_listings(raw: list[Any]) -> list[Listing]:
    listings: list[Listing] = []
    skipped = 0
    for entry in raw:
        try:
            listings.append(Listing.model_validate(entry))
        except ValidationError:
            skipped += 1
    if skipped:
        _log.debug("hypixel_listings_skipped", skipped=skipped)
    return listings


async def get_auction_page(client: httpx.AsyncClient, page: int) -> AuctionPage:
    data = await _get_json(client, "/auctions", params={"page": page})
    return AuctionPage(
        page=page,
        total_pages=int(data.get("totalPages", 1) or 1),
        listings=_parse_listings(data.get("auctions", []) or []),
    )


async def get_all_listings(max_pages: int | None = None) -> list[Listing]:
    """Fetch every active auction listing, up to ``max_pages`` pages.

    The first page is mandatory: failing it raises MarketplaceError. Later pages
    are fetched concurrently in chunks and any page that fails is skipped.
    """
    limit = max_pages or settings.AUCTION_MAX_PAGES
    chunk = settings.AUCTION_PAGE_CHUNK

    async with _client() as client:
        try:
            first = await get_auction_page(client, 0)
        except (httpx.HTTPError, ValueError) as exc:
            raise MarketplaceError(f"auction page 0 unavailable: {exc}") from exc

        listings = list(first.listings)
        total = min(first.total_pages, limit)
        failed = 0
        for start in range(1, total, chunk):
            pages = list(range(start, min(start + chunk, total)))
            results = await asyncio.gather(
                *[get_auction_page(client, p) for p in pages], return_exceptions=True
            )
            for page, res in zip(pages, results):
                if isinstance(res, Exception):
                    failed += 1
                    _log.warning("hypixel_auction_page_failed", page=page, error=str(res))
                    continue
                listings.extend(cast(AuctionPage, res).listings)

    _log.info("hypixel_auctions_fetched", pages=total, failed_pages=failed, listings=len(listings))
    return listings


def _parse_quote(product_id: str, product: dict[str, Any]) -> CommodityQuote | None:
    status = product.get("quick_status")
    if not isinstance(status, dict):
        return None
    # Bazaar naming is from the order book's side: sellPrice is what a buyer pays.
    return CommodityQuote(
        product_id=product_id,
        name=format_product_name(str(product.get("product_id") or product_id)),
        instant_buy=float(status.get("sellPrice", 0) or 0),
        instant_sell=float(status.get("buyPrice", 0) or 0),
        buy_volume=int(status.get("buyMovingWeek", 0) or 0),
        sell_volume=int(status.get("sellMovingWeek", 0) or 0),
    )


async def get_bazaar_quotes() -> dict[str, CommodityQuote]:
    """Current bazaar quick status for every product, keyed by product id."""
    try:
        async with _client() as client:
            data = await _get_json(client, "/bazaar")
    except (httpx.HTTPError, ValueError) as exc:
        raise MarketplaceError(f"bazaar unavailable: {exc}") from exc

    quotes: dict[str, CommodityQuote] = {}
    for product_id, product in (data.get("products") or {}).items():
        if not isinstance(product, dict):
            continue
        try:
            quote = _parse_quote(product_id, product)
        except (TypeError, ValueError):
            continue
        if quote is not None:
            quotes[product_id] = quote
    _log.info("hypixel_bazaar_fetched", products=len(quotes))
    return quotes
