from __future__ import annotations

import json
from typing import Any, cast

import httpx
from pydantic import ValidationError
from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from ..config import settings
from ..db.cache import get_json, ns, set_json
from ..logging import get_logger
from ..models.flips import ValueAssessment
from ..models.market import Rarity
from ..models.recipe import IngredientRequirement
from ..services.normalize import strip_formatting

_log = get_logger()

RECIPE_TEMPERATURE = 0.1
VALUE_TEMPERATURE = 0.3

RECIPE_SCHEMA: dict[str, Any] = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "ingredientId": {
                "type": "STRING",
                "description": "Bazaar product id of the ingredient, e.g. ENCHANTED_DIAMOND_BLOCK.",
            },
            "quantity": {
                "type": "NUMBER",
                "description": "Total units of this ingredient used by one craft.",
            },
        },
        "required": ["ingredientId", "quantity"],
    },
}

VALUE_SCHEMA: dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "estimatedValue": {"type": "NUMBER", "description": "Fair market value in coins."},
        "potentialProfit": {
            "type": "NUMBER",
            "description": "Fair value minus auction tax minus the current lowest price.",
        },
        "reasoning": {"type": "STRING", "description": "At most 20 words."},
    },
    "required": ["estimatedValue", "potentialProfit", "reasoning"],
}


class OracleError(RuntimeError):
    """The inference service gave no usable answer."""


def _retryer() -> AsyncRetrying:
    return AsyncRetrying(
        reraise=True,
        stop=stop_after_attempt(settings.RETRY_MAX),
        wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
        retry=retry_if_exception_type(
            (httpx.ReadTimeout, httpx.ConnectTimeout, httpx.HTTPStatusError)
        ),
    )


def _client() -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=str(settings.GEMINI_BASE).rstrip("/"),
        timeout=httpx.Timeout(30.0, read=60.0),
        headers={
            "User-Agent": settings.USER_AGENT,
            "x-goog-api-key": settings.GEMINI_API_KEY or "",
        },
    )


def recipe_prompt(item_name: str) -> str:
    return (
        "You know Hypixel Skyblock crafting recipes.\n"
        f'Item: "{item_name}"\n\n'
        "1. Give the main crafting recipe, preferring materials sold on the Bazaar.\n"
        "2. For upgraded variants (stars, reforges) give the recipe of the base item.\n"
        "3. If the item is a drop or cannot be crafted from common materials, answer [].\n"
        "4. List base ingredients with total quantities, not intermediate crafts.\n\n"
        "Answer with the JSON array only."
    )


def value_prompt(name: str, lore: str, rarity: Rarity, price: int) -> str:
    return (
        "You are an expert on the Hypixel Skyblock economy. Decide whether this "
        "Auction House item is undervalued.\n\n"
        f'Name: "{name}"\n'
        f"Rarity: {rarity.value}\n"
        f"Current lowest price: {price:,} coins\n"
        f'Lore and stats: "{strip_formatting(lore)}"\n\n'
        "Estimate the fair market value from enchantments, stats, applied upgrades "
        "(books, recombobulator, gemstones) and the price of similar items. "
        "Potential profit is (value - tax) - current price, where tax is 1% below "
        "1,000,000 coins and 2% from 1,000,000. It may be negative. "
        "Give a reasoning of at most 20 words.\n\n"
        "Answer with the JSON object only."
    )


def _extract_text(data: dict[str, Any]) -> str:
    try:
        parts = data["candidates"][0]["content"]["parts"]
        return "".join(str(p.get("text", "")) for p in parts)
    except (KeyError, IndexError, TypeError) as exc:
        raise OracleError("response carries no text part") from exc


async def generate_json(prompt: str, schema: dict[str, Any], temperature: float) -> Any:
    """Ask the model for a JSON document matching ``schema``."""
    if not settings.GEMINI_API_KEY:
        raise OracleError("GEMINI_API_KEY is not configured")
    payload = {
        "contents": [{"parts": [{"text": prompt}]}],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": schema,
            "temperature": temperature,
        },
    }
    data: dict[str, Any] = {}
    try:
        async with _client() as client:
            async for attempt in _retryer():
                with attempt:
                    resp = await client.post(f"/models/{settings.GEMINI_MODEL}:generateContent", json=payload)
                    resp.raise_for_status()
                    data = cast(dict[str, Any], resp.json())
    except httpx.HTTPError as exc:
        raise OracleError(f"generateContent failed: {exc}") from exc
    except ValueError as exc:
        raise OracleError("generateContent returned invalid JSON") from exc

    text = _extract_text(data).strip()
    try:
        return json.loads(text)
    except ValueError as exc:
        raise OracleError("model answer is not valid JSON") from exc


def _parse_ingredients(raw: Any) -> list[IngredientRequirement]:
    if not isinstance(raw, list):
        raise OracleError("recipe answer is not a list")
    ingredients: list[IngredientRequirement] = []
    for entry in raw:
        try:
            ingredients.append(IngredientRequirement.model_validate(entry))
        except ValidationError as exc:
            # One unusable line makes the whole recipe unpriceable.
            raise OracleError(f"recipe entry rejected: {entry!r}") from exc
    return ingredients


async def infer_recipe(item_name: str) -> list[IngredientRequirement]:
    """Ingredient list for one craft of ``item_name``; empty when not craftable.

    Cached at key: oracle:recipe:{item_name}
    """
    key = ns("oracle", f"recipe:{item_name}")
    cached = await get_json(key)
    if cached is not None:
        return _parse_ingredients(cached)

    raw = await generate_json(recipe_prompt(item_name), RECIPE_SCHEMA, RECIPE_TEMPERATURE)
    ingredients = _parse_ingredients(raw)
    await set_json(
        key,
        [ing.model_dump(by_alias=True) for ing in ingredients],
        ttl=settings.CACHE_TTL_LONG,
    )
    _log.info("recipe_inferred", item=item_name, ingredients=len(ingredients))
    return ingredients


async def infer_value(name: str, lore: str, rarity: Rarity, price: int) -> ValueAssessment:
    raw = await generate_json(value_prompt(name, lore, rarity, price), VALUE_SCHEMA, VALUE_TEMPERATURE)
    if not isinstance(raw, dict):
        raise OracleError("valuation answer is not an object")
    try:
        assessment = ValueAssessment(
            estimated_value=round(float(raw["estimatedValue"])),
            estimated_profit=round(float(raw["potentialProfit"])),
            reasoning=str(raw.get("reasoning", "")),
        )
    except (KeyError, TypeError, ValueError) as exc:
        raise OracleError("valuation answer is missing fields") from exc
    _log.info("value_inferred", item=name, value=assessment.estimated_value)
    return assessment
