"""
Purchase-order drafting from projected shortages.

For each ingredient with projected usage or a reorder point:

    projected = usable on-hand - projected usage
    reorder when projected <= reorder_point, or projected < 0
    order quantity = par_level - projected   (shortfall when par is unknown)

Drafts are returned to the caller for the procurement workflow; nothing is
persisted here.
"""

from datetime import date as Date
from typing import Dict, List, Optional
import logging
import math

from ..config import PlanningConfig
from ..constants import DAYS_PER_YEAR, QUANTITY_TOLERANCE
from ..inventory.ledger import InventoryLedger
from ..inventory.par_levels import eoq
from ..models.procurement import OrderReason, PurchaseOrderDraft, PurchaseOrderLine
from ..models.recipe import Ingredient
from ..persistence.repositories import (
    HistoryRepository,
    IngredientRepository,
    InventoryLotRepository,
)
from ..units.converter import UnitConverter

logger = logging.getLogger(__name__)


class ProcurementGenerator:
    """
    Drafts purchase-order lines for a site.

    Example:
        generator = ProcurementGenerator(ingredients, lots)
        draft = generator.generate("site-1", {"ING-RICE": 40.0}, date(2026, 3, 2))
        for vendor_id, lines in draft.by_vendor().items():
            ...
    """

    def __init__(
        self,
        ingredient_repository: IngredientRepository,
        lot_repository: InventoryLotRepository,
        converter: Optional[UnitConverter] = None,
        config: Optional[PlanningConfig] = None,
        history_repository: Optional[HistoryRepository] = None,
    ):
        self.ingredient_repository = ingredient_repository
        self.lot_repository = lot_repository
        self.converter = converter or UnitConverter()
        self.config = config or PlanningConfig()
        self.history_repository = history_repository
        self._ledger = InventoryLedger(lot_repository, ingredient_repository, converter=self.converter)

    def _order_quantity(self, ingredient: Ingredient, projected: float) -> float:
        if ingredient.par_level is not None:
            return ingredient.par_level - projected
        return max(-projected, (ingredient.reorder_point or 0.0) - projected)

    def _round_to_eoq(self, ingredient: Ingredient, site_id: str, quantity: float) -> float:
        """Raise an order to the EOQ when usage history and cost allow it."""
        if self.history_repository is None or not ingredient.cost_per_unit:
            return quantity
        usage = self.history_repository.usage_history(ingredient.ingredient_id, site_id)
        if not usage:
            return quantity
        annual_demand = sum(usage) / len(usage) * DAYS_PER_YEAR
        result = eoq(
            annual_demand,
            self.config.ordering_cost,
            self.config.holding_cost_percent,
            ingredient.cost_per_unit,
        )
        return max(quantity, float(math.ceil(result.optimal_order_quantity)))

    @staticmethod
    def _reason(on_hand: float, projected: float) -> OrderReason:
        if on_hand <= QUANTITY_TOLERANCE:
            return OrderReason.OUT_OF_STOCK
        if projected < 0:
            return OrderReason.FORECAST_SHORTAGE
        return OrderReason.BELOW_REORDER_POINT

    def generate(
        self,
        site_id: str,
        projected_usage: Dict[str, float],
        as_of: Date,
    ) -> PurchaseOrderDraft:
        """
        Draft order lines for a site.

        Args:
            site_id: Site to replenish
            projected_usage: Forecast-driven usage by ingredient, in common units
            as_of: Date the draft is generated for (expired lots excluded)

        Returns:
            PurchaseOrderDraft with lines sorted by ingredient ID

        Raises:
            RecordNotFound: If projected usage names an unknown ingredient
        """
        ingredients = {i.ingredient_id: i for i in self.ingredient_repository.list_all()}
        for ingredient_id in projected_usage:
            if ingredient_id not in ingredients:
                ingredients[ingredient_id] = self.ingredient_repository.get(ingredient_id)

        lines: List[PurchaseOrderLine] = []
        for ingredient_id in sorted(ingredients):
            ingredient = ingredients[ingredient_id]
            usage = max(projected_usage.get(ingredient_id, 0.0), 0.0)
            if usage <= 0 and ingredient.reorder_point is None:
                continue

            on_hand = self._ledger.on_hand(ingredient_id, site_id, as_of=as_of, unit=ingredient.common_unit)
            projected = on_hand - usage
            below_reorder = ingredient.reorder_point is not None and projected <= ingredient.reorder_point
            if not (below_reorder or projected < 0):
                continue

            quantity = self._order_quantity(ingredient, projected)
            if self.config.round_orders_to_eoq:
                quantity = self._round_to_eoq(ingredient, site_id, quantity)
            if quantity <= QUANTITY_TOLERANCE:
                continue

            lines.append(PurchaseOrderLine(
                ingredient_id=ingredient_id,
                order_quantity=quantity,
                unit=ingredient.common_unit,
                reason=self._reason(on_hand, projected),
                current_on_hand=on_hand,
                projected_usage=usage,
                reorder_point=ingredient.reorder_point,
                par_level=ingredient.par_level,
                estimated_unit_cost=ingredient.cost_per_unit or 0.0,
                preferred_vendor_id=ingredient.preferred_vendor_id,
            ))

        draft = PurchaseOrderDraft(site_id=site_id, generated_for=as_of, lines=lines)
        logger.info(f"Drafted {draft}")
        return draft
