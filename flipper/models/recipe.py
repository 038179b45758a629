from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class IngredientRequirement(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    product_id: str = Field(..., alias="ingredientId", min_length=1)
    quantity: float = Field(..., gt=0)


class RecipeLine(BaseModel):
    """Priced ingredient kept on a crafting flip for display."""

    model_config = ConfigDict(frozen=True)

    product_id: str
    name: str
    quantity: float
    unit_price: float
    cost: float
