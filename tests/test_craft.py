from __future__ import annotations

import asyncio

import pytest

from flipper.models.flips import FlipKind
from flipper.models.market import CommodityQuote, Rarity
from flipper.models.recipe import IngredientRequirement
from flipper.services.auction import AnalysisCandidate
from flipper.services.craft import CraftFlipConfig, compute_craft_cost, find_crafting_flips

QUOTES = {
    "ENCHANTED_DIAMOND": CommodityQuote(
        product_id="ENCHANTED_DIAMOND", name="Enchanted Diamond", instant_buy=1_000, instant_sell=900
    ),
    "WITHER_CATALYST": CommodityQuote(
        product_id="WITHER_CATALYST", name="Wither Catalyst", instant_buy=250_000, instant_sell=240_000
    ),
    "DELISTED": CommodityQuote(product_id="DELISTED", name="Delisted", instant_buy=0, instant_sell=0),
}


def _mk_candidate(name: str, price: int) -> AnalysisCandidate:
    return AnalysisCandidate(id=f"auc-{name}", name=name, lore="", rarity=Rarity.LEGENDARY, price=price)


def _ing(pid: str, qty: float) -> IngredientRequirement:
    return IngredientRequirement(product_id=pid, quantity=qty)


def test_compute_craft_cost() -> None:
    cost = compute_craft_cost([_ing("ENCHANTED_DIAMOND", 100), _ing("WITHER_CATALYST", 2)], QUOTES)
    assert cost is not None
    assert cost.total_cost == 600_000
    assert [line.cost for line in cost.breakdown] == [100_000, 500_000]
    assert cost.breakdown[1].name == "Wither Catalyst"


def test_compute_craft_cost_missing_or_unpriced_quote() -> None:
    assert compute_craft_cost([_ing("ENCHANTED_DIAMOND", 1), _ing("UNKNOWN", 1)], QUOTES) is None
    assert compute_craft_cost([_ing("DELISTED", 1)], QUOTES) is None


@pytest.mark.asyncio
async def test_crafting_profit_after_tax() -> None:
    async def _oracle(name: str) -> list[IngredientRequirement]:
        return [_ing("ENCHANTED_DIAMOND", 1_000)]

    flips = await find_crafting_flips([_mk_candidate("Hyperion", 2_000_000)], _oracle, QUOTES)
    assert len(flips) == 1
    flip = flips[0]
    assert flip.kind is FlipKind.CRAFTING
    assert flip.craft_cost == 1_000_000
    assert flip.profit == 960_000
    assert flip.recipe[0].product_id == "ENCHANTED_DIAMOND"

    strict = CraftFlipConfig(min_profit=960_000)
    assert await find_crafting_flips([_mk_candidate("Hyperion", 2_000_000)], _oracle, QUOTES, strict) == []


@pytest.mark.asyncio
async def test_unquoted_ingredient_excludes_whole_candidate() -> None:
    async def _oracle(name: str) -> list[IngredientRequirement]:
        return [_ing("ENCHANTED_DIAMOND", 10), _ing("NECRON_HANDLE", 1)]

    assert await find_crafting_flips([_mk_candidate("Hyperion", 2_000_000)], _oracle, QUOTES) == []


@pytest.mark.asyncio
async def test_oracle_failures_are_isolated_and_progress_completes() -> None:
    recipes = {
        "Broken": None,
        "Drop Only": [],
        "Giant's Sword": [_ing("ENCHANTED_DIAMOND", 100)],
        "Hyperion": [_ing("WITHER_CATALYST", 4)],
    }
    delays = {"Broken": 0.02, "Drop Only": 0.0, "Giant's Sword": 0.03, "Hyperion": 0.01}

    async def _oracle(name: str) -> list[IngredientRequirement]:
        await asyncio.sleep(delays[name])
        recipe = recipes[name]
        if recipe is None:
            raise RuntimeError("oracle unavailable")
        return recipe

    seen: list[int] = []
    candidates = [_mk_candidate(name, 3_000_000) for name in recipes]
    flips = await find_crafting_flips(
        candidates, _oracle, QUOTES, CraftFlipConfig(concurrency=4), progress=seen.append
    )

    assert [f.item_name for f in flips] == ["Giant's Sword", "Hyperion"]
    assert len(seen) == len(candidates)
    assert seen == sorted(seen)
    assert seen[-1] == 100
    assert all(p < 100 for p in seen[:-1])


@pytest.mark.asyncio
async def test_no_candidates_reports_done() -> None:
    async def _oracle(name: str) -> list[IngredientRequirement]:
        raise AssertionError("not called")

    seen: list[int] = []
    assert await find_crafting_flips([], _oracle, QUOTES, progress=seen.append) == []
    assert seen == [100]
