"""
Recipe scaling by the factor method.

``scale_factor = target_yield / recipe.yield_quantity`` is applied to every
ingredient line. Each scaled quantity is then given a practical kitchen
measurement: the integer part is kept exactly and the fractional part is
rounded to the nearest of 0, 1/4, 1/3, 1/2, 2/3, 3/4 or 1.

Seasonings do not scale linearly, so lines for ingredients flagged
``is_seasoning`` get a warning (not an adjustment) when the factor exceeds
the seasoning warning factor.
"""

from dataclasses import dataclass, field
from fractions import Fraction
from typing import List, Optional
import logging
import math

from ..constants import PRACTICAL_FRACTIONS, SEASONING_WARNING_FACTOR
from ..exceptions import InvalidParameters
from ..models.recipe import Recipe
from ..persistence.repositories import IngredientRepository
from .costing import RecipeCostCalculator

logger = logging.getLogger(__name__)


def practical_quantity(quantity: float) -> float:
    """
    Round a quantity to a practical kitchen measurement.

    The integer part is preserved; the fractional part goes to the nearest
    common fraction (ties resolve to the smaller fraction).

    Example:
        practical_quantity(2.3)   # 2.333...
        practical_quantity(4.9)   # 5.0
    """
    whole = math.floor(quantity)
    fractional = quantity - whole
    nearest = min(PRACTICAL_FRACTIONS, key=lambda f: abs(f - fractional))
    return whole + nearest


def format_quantity(quantity: float) -> str:
    """Display a practical quantity as a mixed number ("2 1/3")."""
    whole = math.floor(quantity)
    fraction = Fraction(quantity - whole).limit_denominator(12)
    if fraction == 1:
        whole, fraction = whole + 1, Fraction(0)
    if fraction == 0:
        return str(whole)
    if whole == 0:
        return f"{fraction.numerator}/{fraction.denominator}"
    return f"{whole} {fraction.numerator}/{fraction.denominator}"


@dataclass
class ScaledIngredient:
    """One scaled ingredient line."""
    ingredient_id: str
    original_quantity: float
    scaled_quantity: float
    practical_quantity: float
    unit: str
    display: str
    is_seasoning: bool = False
    estimated_cost: Optional[float] = None
    notes: List[str] = field(default_factory=list)


@dataclass
class ScaledRecipe:
    """
    A recipe scaled to a target yield.

    Attributes:
        recipe_id: Recipe scaled
        original_yield: Recipe yield quantity
        target_yield: Requested yield
        scale_factor: target_yield / original_yield
        ingredients: Scaled lines
        warnings: Seasoning and rounding warnings
    """
    recipe_id: str
    original_yield: float
    target_yield: float
    scale_factor: float
    ingredients: List[ScaledIngredient] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def estimated_total_cost(self) -> Optional[float]:
        """Sum of line cost estimates (None if no line was costed)."""
        costs = [i.estimated_cost for i in self.ingredients if i.estimated_cost is not None]
        return sum(costs) if costs else None

    def get_ingredient(self, ingredient_id: str) -> Optional[ScaledIngredient]:
        """Look up a scaled line by ingredient ID."""
        for line in self.ingredients:
            if line.ingredient_id == ingredient_id:
                return line
        return None


class RecipeScaler:
    """
    Scales recipes to a target yield.

    Without an ingredient repository the scaler cannot tell seasonings apart
    or attach cost estimates; quantities are scaled all the same.
    """

    def __init__(
        self,
        ingredient_repository: Optional[IngredientRepository] = None,
        cost_calculator: Optional[RecipeCostCalculator] = None,
        seasoning_warning_factor: float = SEASONING_WARNING_FACTOR,
    ):
        self.ingredient_repository = ingredient_repository
        self.cost_calculator = cost_calculator
        if self.cost_calculator is None and ingredient_repository is not None:
            self.cost_calculator = RecipeCostCalculator(ingredient_repository)
        self.seasoning_warning_factor = seasoning_warning_factor

    def scale(self, recipe: Recipe, target_yield: float) -> ScaledRecipe:
        """
        Scale a recipe to a target yield.

        Args:
            recipe: Recipe to scale
            target_yield: Desired yield in the recipe's yield unit

        Returns:
            ScaledRecipe with practical quantities

        Raises:
            InvalidParameters: If target_yield is negative
        """
        if target_yield < 0:
            raise InvalidParameters(
                "target_yield must be non-negative",
                {"recipe_id": recipe.recipe_id, "target_yield": target_yield},
            )

        factor = target_yield / recipe.yield_quantity
        result = ScaledRecipe(
            recipe_id=recipe.recipe_id,
            original_yield=recipe.yield_quantity,
            target_yield=target_yield,
            scale_factor=factor,
        )

        for line in recipe.ingredients:
            scaled = line.quantity * factor
            practical = practical_quantity(scaled)
            notes: List[str] = []
            if practical == 0 and scaled > 0:
                # Too small for a kitchen measure; keep the exact amount
                practical = scaled
                notes.append(f"{scaled:.3f} {line.unit} is below the smallest practical measure")

            ingredient = None
            if self.ingredient_repository is not None:
                ingredient = self.ingredient_repository.get(line.ingredient_id)

            is_seasoning = ingredient is not None and ingredient.is_seasoning
            if is_seasoning and factor > self.seasoning_warning_factor:
                warning = (
                    f"{ingredient.name}: scale factor {factor:.2f} exceeds "
                    f"{self.seasoning_warning_factor:g}; adjust seasoning to taste"
                )
                notes.append(warning)
                result.warnings.append(warning)

            estimated_cost = None
            if ingredient is not None and self.cost_calculator is not None:
                estimated_cost = self.cost_calculator.line_cost(line, ingredient, scaled)

            result.ingredients.append(ScaledIngredient(
                ingredient_id=line.ingredient_id,
                original_quantity=line.quantity,
                scaled_quantity=scaled,
                practical_quantity=practical,
                unit=line.unit,
                display=f"{format_quantity(practical)} {line.unit}",
                is_seasoning=is_seasoning,
                estimated_cost=estimated_cost,
                notes=notes,
            ))

        if result.warnings:
            logger.warning(
                f"Scaling {recipe.recipe_id} by {factor:.2f}: {len(result.warnings)} seasoning warnings"
            )
        return result
