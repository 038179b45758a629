from __future__ import annotations

from typing import Any

import httpx
import pytest

from flipper.clients import hypixel as h
from flipper.models.market import Rarity


class _FakeResponse:
    def __init__(self, payload: dict[str, Any], status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:  # mimic httpx.Response
        if self.status_code >= 400:
            raise RuntimeError(f"HTTP {self.status_code}")

    def json(self) -> dict[str, Any]:
        return self._payload


class _FakeClient:
    def __init__(self, on_get: Any) -> None:
        self._on_get = on_get
        self.calls: list[tuple[str, dict[str, Any] | None]] = []

    async def __aenter__(self) -> "_FakeClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: D401
        return None

    async def get(self, url: str, params: dict[str, Any] | None = None) -> _FakeResponse:
        self.calls.append((url, params))
        return await self._on_get(url, params)


def _auction(uuid: str, price: int, **extra: Any) -> dict[str, Any]:
    return {
        "uuid": uuid,
        "auctioneer": "f0e1",
        "item_name": "§6Hyperion",
        "tier": "LEGENDARY",
        "item_lore": "§7Damage: §c+260",
        "starting_bid": price,
        "bin": True,
        "claimed": False,
        **extra,
    }


@pytest.mark.asyncio
async def test_failed_pages_are_skipped(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _on_get(url: str, params: dict[str, Any] | None) -> _FakeResponse:
        assert url == "/auctions"
        page = params["page"] if params else 0
        if page == 2:
            raise httpx.ConnectError("connection reset")
        auctions = [_auction(f"p{page}", 1_000 + page)]
        if page == 0:
            auctions.append(_auction("bad-tier", 5, tier="ULTRA"))
            auctions.append(_auction("free", 0))
        return _FakeResponse({"success": True, "totalPages": 4, "auctions": auctions})

    fake = _FakeClient(_on_get)
    monkeypatch.setattr(h, "_client", lambda: fake)

    listings = await h.get_all_listings()

    assert sorted(x.uuid for x in listings) == ["p0", "p1", "p3"]
    assert listings[0].tier is Rarity.LEGENDARY
    assert listings[0].price == 1_000
    assert len(fake.calls) == 4


@pytest.mark.asyncio
async def test_max_pages_caps_requests(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _on_get(url: str, params: dict[str, Any] | None) -> _FakeResponse:
        page = params["page"] if params else 0
        return _FakeResponse({"success": True, "totalPages": 80, "auctions": [_auction(f"p{page}", 10)]})

    fake = _FakeClient(_on_get)
    monkeypatch.setattr(h, "_client", lambda: fake)

    listings = await h.get_all_listings(max_pages=7)
    assert len(listings) == 7
    assert sorted(p["page"] for _, p in fake.calls if p) == list(range(7))


@pytest.mark.asyncio
async def test_first_page_failure_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _on_get(url: str, params: dict[str, Any] | None) -> _FakeResponse:
        raise httpx.ConnectError("unreachable")

    monkeypatch.setattr(h, "_client", lambda: _FakeClient(_on_get))

    with pytest.raises(h.MarketplaceError):
        await h.get_all_listings()


@pytest.mark.asyncio
async def test_unsuccessful_payload_is_fatal(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _on_get(url: str, params: dict[str, Any] | None) -> _FakeResponse:
        return _FakeResponse({"success": False, "cause": "Key throttle"})

    monkeypatch.setattr(h, "_client", lambda: _FakeClient(_on_get))

    with pytest.raises(h.MarketplaceError, match="Key throttle"):
        await h.get_bazaar_quotes()


@pytest.mark.asyncio
async def test_bazaar_quotes_are_read_from_trader_side(monkeypatch: pytest.MonkeyPatch) -> None:
    async def _on_get(url: str, params: dict[str, Any] | None) -> _FakeResponse:
        assert url == "/bazaar"
        return _FakeResponse(
            {
                "success": True,
                "products": {
                    "ENCHANTED_DIAMOND": {
                        "product_id": "ENCHANTED_DIAMOND",
                        "quick_status": {
                            "sellPrice": 1_050.5,
                            "buyPrice": 1_200.0,
                            "buyMovingWeek": 4_000_000,
                            "sellMovingWeek": 3_500_000,
                        },
                    },
                    "NO_STATUS": {"product_id": "NO_STATUS"},
                },
            }
        )

    monkeypatch.setattr(h, "_client", lambda: _FakeClient(_on_get))

    quotes = await h.get_bazaar_quotes()
    assert list(quotes) == ["ENCHANTED_DIAMOND"]
    quote = quotes["ENCHANTED_DIAMOND"]
    assert quote.name == "Enchanted Diamond"
    assert quote.instant_buy == 1_050.5
    assert quote.instant_sell == 1_200.0
    assert quote.buy_volume == 4_000_000
    assert quote.sell_volume == 3_500_000
