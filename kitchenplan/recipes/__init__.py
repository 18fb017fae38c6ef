"""Recipe scaling and costing."""

from .costing import RecipeCostCalculator, RecipeCost, IngredientCostLine
from .scaler import (
    RecipeScaler,
    ScaledRecipe,
    ScaledIngredient,
    practical_quantity,
    format_quantity,
)

__all__ = [
    'RecipeCostCalculator',
    'RecipeCost',
    'IngredientCostLine',
    'RecipeScaler',
    'ScaledRecipe',
    'ScaledIngredient',
    'practical_quantity',
    'format_quantity',
]
