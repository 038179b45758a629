from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass

from ..config import Settings, settings
from ..logging import get_logger
from ..models.flips import CraftingFlip
from ..models.market import CommodityQuote
from ..models.recipe import IngredientRequirement, RecipeLine
from .auction import AnalysisCandidate
from .fanout import ProgressCallback, gather_with_progress
from .tax import net_proceeds

_log = get_logger()

RecipeOracle = Callable[[str], Awaitable[list[IngredientRequirement]]]


@dataclass(frozen=True)
class CraftFlipConfig:
    min_profit: float = 100_000
    concurrency: int = 5

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "CraftFlipConfig":
        return cls(min_profit=cfg.CRAFT_MIN_PROFIT, concurrency=cfg.ORACLE_CONCURRENCY)


@dataclass
class CraftCost:
    total_cost: float
    breakdown: list[RecipeLine]


def compute_craft_cost(
    ingredients: Sequence[IngredientRequirement],
    quotes: Mapping[str, CommodityQuote],
) -> CraftCost | None:
    """Price a recipe at instant-buy bazaar prices.

    Returns None as soon as one ingredient has no usable quote; partial costs are
    never reported.
    """
    total = 0.0
    breakdown: list[RecipeLine] = []
    for ing in ingredients:
        quote = quotes.get(ing.product_id)
        if quote is None or quote.instant_buy <= 0:
            return None
        cost = quote.instant_buy * ing.quantity
        total += cost
        breakdown.append(
            RecipeLine(
                product_id=ing.product_id,
                name=quote.name,
                quantity=ing.quantity,
                unit_price=quote.instant_buy,
                cost=cost,
            )
        )
    return CraftCost(total_cost=total, breakdown=breakdown)


async def find_crafting_flips(
    candidates: Sequence[AnalysisCandidate],
    oracle: RecipeOracle,
    quotes: Mapping[str, CommodityQuote],
    config: CraftFlipConfig | None = None,
    progress: ProgressCallback | None = None,
) -> list[CraftingFlip]:
    """Compare each candidate's resale value with the cost of crafting it.

    One oracle call per candidate; a failed call counts as "not craftable".
    """
    cfg = config or CraftFlipConfig()

    async def _recipe(candidate: AnalysisCandidate) -> list[IngredientRequirement]:
        return await oracle(candidate.name)

    def _failed(candidate: AnalysisCandidate, exc: Exception) -> list[IngredientRequirement]:
        _log.warning("recipe_inference_failed", item=candidate.name, error=str(exc))
        return []

    recipes = await gather_with_progress(
        candidates,
        _recipe,
        on_error=_failed,
        progress=progress,
        concurrency=cfg.concurrency,
    )

    flips: list[CraftingFlip] = []
    for candidate, ingredients in zip(candidates, recipes):
        if not ingredients:
            continue
        cost = compute_craft_cost(ingredients, quotes)
        if cost is None:
            _log.debug("recipe_not_quoted", item=candidate.name)
            continue
        if cost.total_cost <= 0:
            continue
        profit = net_proceeds(candidate.price) - cost.total_cost
        if profit <= cfg.min_profit:
            continue
        flips.append(
            CraftingFlip(
                id=candidate.id,
                item_name=candidate.name,
                rarity=candidate.rarity,
                market_price=candidate.price,
                craft_cost=round(cost.total_cost),
                profit=round(profit),
                recipe=cost.breakdown,
            )
        )
    return flips
