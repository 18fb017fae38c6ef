"""Purchase-order draft models handed to the procurement workflow."""

from datetime import date as Date
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class OrderReason(str, Enum):
    """Why a line was drafted."""
    OUT_OF_STOCK = "out_of_stock"
    FORECAST_SHORTAGE = "forecast_shortage"
    BELOW_REORDER_POINT = "below_reorder_point"


class PurchaseOrderLine(BaseModel):
    """
    One drafted order line.

    Attributes:
        ingredient_id: Ingredient to order
        order_quantity: Quantity to order in ``unit``
        unit: Ingredient common unit
        reason: Why the line was drafted
        current_on_hand: On-hand quantity at drafting time
        projected_usage: Forecast-driven usage over the horizon
        reorder_point: Ingredient reorder point (if known)
        par_level: Ingredient par level (if known)
        estimated_unit_cost: Cost per unit used for the estimate
        preferred_vendor_id: Default vendor
    """
    ingredient_id: str
    order_quantity: float = Field(..., gt=0)
    unit: str
    reason: OrderReason
    current_on_hand: float = Field(..., ge=0)
    projected_usage: float = Field(default=0.0, ge=0)
    reorder_point: Optional[float] = None
    par_level: Optional[float] = None
    estimated_unit_cost: float = Field(default=0.0, ge=0)
    preferred_vendor_id: Optional[str] = None

    model_config = ConfigDict(frozen=True)

    @property
    def estimated_cost(self) -> float:
        """Order quantity times unit cost, rounded to cents."""
        return round(self.order_quantity * self.estimated_unit_cost, 2)

    @property
    def projected_on_hand(self) -> float:
        """On-hand after projected usage (negative means a stockout)."""
        return self.current_on_hand - self.projected_usage


class PurchaseOrderDraft(BaseModel):
    """Transient list of order lines for one site; never persisted by the core."""
    site_id: str
    generated_for: Date
    lines: List[PurchaseOrderLine] = Field(default_factory=list)

    model_config = ConfigDict(frozen=True)

    @property
    def total_estimated_cost(self) -> float:
        """Sum of line estimates."""
        return round(sum(line.estimated_cost for line in self.lines), 2)

    def by_vendor(self) -> Dict[Optional[str], List[PurchaseOrderLine]]:
        """Group lines by preferred vendor (None = no preferred vendor)."""
        grouped: Dict[Optional[str], List[PurchaseOrderLine]] = {}
        for line in self.lines:
            grouped.setdefault(line.preferred_vendor_id, []).append(line)
        return grouped

    def is_empty(self) -> bool:
        """True when nothing needs ordering."""
        return not self.lines

    def __str__(self) -> str:
        """String representation."""
        return (
            f"PurchaseOrderDraft {self.site_id} for {self.generated_for}: "
            f"{len(self.lines)} lines, ${self.total_estimated_cost:,.2f}"
        )
