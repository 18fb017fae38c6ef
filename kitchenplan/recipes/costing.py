"""
Recipe costing with as-purchased / edible-portion yield adjustment.

Line quantities are converted to the ingredient's common unit before the
unit cost is applied. Lines measured as-purchased (AP) are divided by the
ingredient's ``yield_percent`` to account for trim loss.
"""

from dataclasses import dataclass, field
from typing import List, Optional
import logging

from ..models.recipe import Ingredient, MeasureBasis, Recipe, RecipeIngredient
from ..persistence.repositories import IngredientRepository
from ..units.converter import UnitConverter

logger = logging.getLogger(__name__)


@dataclass
class IngredientCostLine:
    """Cost of one recipe ingredient line."""
    ingredient_id: str
    ingredient_name: str
    quantity: float
    unit: str
    common_unit_quantity: float
    unit_cost: float
    line_cost: float
    yield_adjusted: bool


@dataclass
class RecipeCost:
    """
    Full cost breakdown of a recipe batch.

    Attributes:
        recipe_id: Recipe costed
        recipe_name: Recipe name
        yield_quantity: Portions per batch
        total_cost: Sum of line costs
        cost_per_portion: total_cost / yield_quantity
        lines: Per-ingredient breakdown
        uncosted_ingredient_ids: Ingredients without a cost_per_unit
    """
    recipe_id: str
    recipe_name: str
    yield_quantity: float
    total_cost: float
    cost_per_portion: float
    lines: List[IngredientCostLine] = field(default_factory=list)
    uncosted_ingredient_ids: List[str] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        """True when every ingredient carried a cost."""
        return not self.uncosted_ingredient_ids


class RecipeCostCalculator:
    """Costs recipes from ingredient master data."""

    def __init__(
        self,
        ingredient_repository: IngredientRepository,
        converter: Optional[UnitConverter] = None,
    ):
        self.ingredient_repository = ingredient_repository
        self.converter = converter or UnitConverter()

    def effective_quantity(
        self,
        line: RecipeIngredient,
        ingredient: Ingredient,
        quantity: Optional[float] = None,
    ) -> float:
        """
        Quantity of a line in the ingredient's common unit, yield-adjusted.

        Args:
            line: Recipe ingredient line
            ingredient: Ingredient master record
            quantity: Override for the line quantity (e.g., after scaling)

        Raises:
            UnconvertibleUnits: If the line unit cannot be converted to the common unit
        """
        amount = line.quantity if quantity is None else quantity
        amount = self.converter.convert(amount, line.unit, ingredient.common_unit)
        if line.measure == MeasureBasis.AS_PURCHASED and ingredient.yield_percent:
            amount = amount / ingredient.yield_percent
        return amount

    def line_cost(
        self,
        line: RecipeIngredient,
        ingredient: Ingredient,
        quantity: Optional[float] = None,
    ) -> Optional[float]:
        """Cost of a line, or None if the ingredient has no unit cost."""
        if ingredient.cost_per_unit is None:
            return None
        return self.effective_quantity(line, ingredient, quantity) * ingredient.cost_per_unit

    def cost(self, recipe: Recipe) -> RecipeCost:
        """
        Cost one batch of a recipe.

        Ingredients without a unit cost contribute zero and are listed in
        ``uncosted_ingredient_ids``.

        Raises:
            RecordNotFound: If an ingredient is missing
            UnconvertibleUnits: If a line unit cannot be converted
        """
        lines: List[IngredientCostLine] = []
        uncosted: List[str] = []
        total = 0.0

        for line in recipe.ingredients:
            ingredient = self.ingredient_repository.get(line.ingredient_id)
            common_quantity = self.effective_quantity(line, ingredient)
            yield_adjusted = (
                line.measure == MeasureBasis.AS_PURCHASED and ingredient.yield_percent is not None
            )
            if ingredient.cost_per_unit is None:
                uncosted.append(ingredient.ingredient_id)
                unit_cost = 0.0
            else:
                unit_cost = ingredient.cost_per_unit
            line_cost = common_quantity * unit_cost
            total += line_cost
            lines.append(IngredientCostLine(
                ingredient_id=ingredient.ingredient_id,
                ingredient_name=ingredient.name,
                quantity=line.quantity,
                unit=line.unit,
                common_unit_quantity=common_quantity,
                unit_cost=unit_cost,
                line_cost=line_cost,
                yield_adjusted=yield_adjusted,
            ))

        if uncosted:
            logger.warning(f"Recipe {recipe.recipe_id} has uncosted ingredients: {uncosted}")

        return RecipeCost(
            recipe_id=recipe.recipe_id,
            recipe_name=recipe.name,
            yield_quantity=recipe.yield_quantity,
            total_cost=total,
            cost_per_portion=total / recipe.yield_quantity,
            lines=lines,
            uncosted_ingredient_ids=uncosted,
        )
