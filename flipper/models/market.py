from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class Rarity(str, Enum):
    COMMON = "COMMON"
    UNCOMMON = "UNCOMMON"
    RARE = "RARE"
    EPIC = "EPIC"
    LEGENDARY = "LEGENDARY"
    MYTHIC = "MYTHIC"
    DIVINE = "DIVINE"
    SPECIAL = "SPECIAL"
    VERY_SPECIAL = "VERY_SPECIAL"


class Listing(BaseModel):
    """One auction house offer as delivered by the marketplace feed."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    uuid: str
    item_name: str
    tier: Rarity
    item_lore: str = ""
    price: int = Field(..., alias="starting_bid", gt=0)
    bin: bool = False
    claimed: bool = False


class CommodityQuote(BaseModel):
    """Bazaar quick status for one product, from the trader's point of view.

    ``instant_buy`` is what it costs to buy one unit right now and
    ``instant_sell`` is what selling one unit right now pays.
    """

    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    instant_buy: float = Field(..., ge=0)
    instant_sell: float = Field(..., ge=0)
    buy_volume: int = Field(0, ge=0)  # units per week
    sell_volume: int = Field(0, ge=0)
