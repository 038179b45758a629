from __future__ import annotations

from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .market import Rarity
from .recipe import RecipeLine


class FlipKind(str, Enum):
    AUCTION = "auction"
    BAZAAR = "bazaar"
    CRAFTING = "crafting"
    TREND = "trend"


class AuctionFlip(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[FlipKind.AUCTION] = FlipKind.AUCTION
    id: str  # uuid of the listing to buy
    item_name: str
    rarity: Rarity
    lore: str
    lowest_bin: int
    market_price: int
    profit: int


class BazaarFlip(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[FlipKind.BAZAAR] = FlipKind.BAZAAR
    id: str  # product id
    item_name: str
    buy_price: float
    sell_price: float
    profit: float
    buy_volume: int
    sell_volume: int


class CraftingFlip(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[FlipKind.CRAFTING] = FlipKind.CRAFTING
    id: str
    item_name: str
    rarity: Rarity
    market_price: int
    craft_cost: int
    profit: int
    recipe: list[RecipeLine]


class ValueAssessment(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    estimated_value: int = Field(..., alias="estimatedValue")
    estimated_profit: int = Field(..., alias="potentialProfit")
    reasoning: str = ""

    @classmethod
    def failed(cls) -> "ValueAssessment":
        return cls(estimated_value=0, estimated_profit=0, reasoning="AI analysis failed for this item.")


class TrendFlip(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: Literal[FlipKind.TREND] = FlipKind.TREND
    id: str
    item_name: str
    rarity: Rarity
    lore: str
    current_price: int
    estimated_value: int
    potential_profit: int
    reasoning: str
