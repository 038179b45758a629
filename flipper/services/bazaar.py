from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from ..config import Settings, settings
from ..models.flips import BazaarFlip
from ..models.market import CommodityQuote


@dataclass(frozen=True)
class BazaarFlipConfig:
    min_profit: float = 100
    min_volume: int = 100

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "BazaarFlipConfig":
        return cls(min_profit=cfg.BAZAAR_MIN_PROFIT, min_volume=cfg.BAZAAR_MIN_VOLUME)


def find_bazaar_flips(
    quotes: Iterable[CommodityQuote],
    config: BazaarFlipConfig | None = None,
) -> list[BazaarFlip]:
    """Instant-buy then instant-sell spreads that are wide and liquid enough."""
    cfg = config or BazaarFlipConfig()
    flips: list[BazaarFlip] = []
    for quote in quotes:
        if quote.instant_buy <= 0 or quote.instant_sell <= 0:
            continue
        profit = quote.instant_sell - quote.instant_buy
        if profit <= cfg.min_profit or quote.buy_volume <= cfg.min_volume:
            continue
        flips.append(
            BazaarFlip(
                id=quote.product_id,
                item_name=quote.name,
                buy_price=quote.instant_buy,
                sell_price=quote.instant_sell,
                profit=profit,
                buy_volume=quote.buy_volume,
                sell_volume=quote.sell_volume,
            )
        )
    return flips
