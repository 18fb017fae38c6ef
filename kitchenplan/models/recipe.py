"""Recipe and ingredient reference data models."""

from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class StorageType(str, Enum):
    """How an ingredient is stored."""
    DRY = "Dry"
    REFRIGERATED = "Refrigerated"
    FROZEN = "Frozen"


class MeasureBasis(str, Enum):
    """Whether a recipe quantity is as-purchased or edible-portion."""
    AS_PURCHASED = "AP"
    EDIBLE_PORTION = "EP"


class Ingredient(BaseModel):
    """
    Purchasable ingredient with costing and stock-control fields.

    Attributes:
        ingredient_id: Unique ingredient identifier
        name: Ingredient name
        common_unit: Unit stock and costs are kept in (e.g., "lb", "cup")
        cost_per_unit: Cost per common unit
        yield_percent: Edible-portion yield from as-purchased (e.g., 0.81)
        storage_type: Dry, Refrigerated or Frozen
        shelf_life_days: Maximum storage time before quality degrades
        par_level: Target on-hand quantity
        reorder_point: On-hand quantity that triggers a reorder
        lead_time_days: Days from order to delivery
        delivery_frequency_days: Days between scheduled deliveries
        preferred_vendor_id: Default vendor
        is_seasoning: Seasonings get a warning instead of linear scaling
    """
    ingredient_id: str = Field(..., description="Unique ingredient identifier")
    name: str = Field(..., description="Ingredient name")
    common_unit: str = Field(..., description="Unit for stock and costing")
    cost_per_unit: Optional[float] = Field(None, description="Cost per common unit", ge=0)
    yield_percent: Optional[float] = Field(
        None,
        description="EP yield from AP (0-1]",
        gt=0,
        le=1
    )
    storage_type: StorageType = Field(default=StorageType.DRY)
    shelf_life_days: Optional[int] = Field(None, ge=0)
    par_level: Optional[float] = Field(None, description="Target inventory level", ge=0)
    reorder_point: Optional[float] = Field(None, description="Reorder trigger level", ge=0)
    lead_time_days: float = Field(default=2.0, description="Order lead time", ge=0)
    delivery_frequency_days: float = Field(default=7.0, description="Days between deliveries", ge=0)
    preferred_vendor_id: Optional[str] = Field(None, description="Default vendor ID")
    is_seasoning: bool = Field(default=False, description="Spice/seasoning flag")

    model_config = ConfigDict(frozen=True)

    def __str__(self) -> str:
        """String representation."""
        return f"{self.name} ({self.ingredient_id})"


class RecipeIngredient(BaseModel):
    """An ingredient line within a recipe."""
    ingredient_id: str = Field(..., description="Ingredient ID")
    quantity: float = Field(..., description="Quantity per recipe yield", ge=0)
    unit: str = Field(..., description="Unit of the quantity")
    measure: MeasureBasis = Field(default=MeasureBasis.EDIBLE_PORTION)
    prep_instruction: Optional[str] = None

    model_config = ConfigDict(frozen=True)


class Recipe(BaseModel):
    """
    Standardized recipe with yield, timing and equipment needs.

    Attributes:
        recipe_id: Unique recipe identifier
        name: Recipe name
        category: Menu category (entree, side, dessert, ...)
        yield_quantity: Portions produced by one batch
        yield_unit: Unit of the yield (usually "portion")
        prep_time_minutes: Hands-on prep time per batch
        cook_time_minutes: Cooking time per batch
        equipment_required: Equipment types occupied during cooking
        ingredients: Ingredient lines for one batch
    """
    recipe_id: str = Field(..., description="Unique recipe identifier")
    name: str = Field(..., description="Recipe name")
    category: Optional[str] = Field(None, description="Menu category")
    yield_quantity: float = Field(..., description="Portions per batch", gt=0)
    yield_unit: str = Field(default="portion")
    prep_time_minutes: int = Field(default=0, ge=0)
    cook_time_minutes: int = Field(default=0, ge=0)
    equipment_required: List[str] = Field(default_factory=list)
    ingredients: List[RecipeIngredient] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def total_time_minutes(self) -> int:
        """Prep plus cook time."""
        return self.prep_time_minutes + self.cook_time_minutes

    def __str__(self) -> str:
        """String representation."""
        return f"{self.name} (yield {self.yield_quantity:g} {self.yield_unit})"
