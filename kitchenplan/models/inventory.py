"""Inventory data models: lots, issuance results and stock-control outputs."""

from datetime import date as Date
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class InventoryLot(BaseModel):
    """
    Quantity of one ingredient at one site, received together.

    Total on-hand for an ingredient/site is the sum of its lot quantities.
    Lots are immutable records; receiving and issuance replace them with
    updated copies (see :meth:`with_quantity`).

    Attributes:
        ingredient_id: Ingredient stored
        site_id: Storage site
        lot_id: Lot/batch number (recall traceability)
        quantity_on_hand: Remaining quantity in ``unit``
        unit: Unit of the quantity
        unit_cost: Cost per unit
        received_date: Date received
        expiration_date: Expiration date (None = non-perishable)
        storage_location: Walk-in cooler, dry storage, ...
    """
    ingredient_id: str = Field(..., description="Ingredient ID")
    site_id: str = Field(..., description="Site ID")
    lot_id: str = Field(..., description="Lot identifier")
    quantity_on_hand: float = Field(..., description="Quantity on hand", ge=0)
    unit: str = Field(..., description="Unit of measure")
    unit_cost: float = Field(default=0.0, description="Cost per unit", ge=0)
    received_date: Date = Field(..., description="Date received")
    expiration_date: Optional[Date] = Field(None, description="Expiration date")
    storage_location: str = Field(default="Dry Storage")

    model_config = ConfigDict(frozen=True)

    @property
    def total_value(self) -> float:
        """Quantity on hand times unit cost."""
        return self.quantity_on_hand * self.unit_cost

    def days_until_expiry(self, as_of: Date) -> Optional[int]:
        """Days from ``as_of`` to expiration (negative once expired)."""
        if self.expiration_date is None:
            return None
        return (self.expiration_date - as_of).days

    def is_expired(self, as_of: Date) -> bool:
        """True at or past the expiration date."""
        days = self.days_until_expiry(as_of)
        return days is not None and days <= 0

    def with_quantity(self, quantity: float, **changes) -> "InventoryLot":
        """Validated copy with a new quantity (raises on negative quantities)."""
        data = self.model_dump()
        data.update(changes)
        data["quantity_on_hand"] = quantity
        return InventoryLot(**data)

    def __str__(self) -> str:
        """String representation."""
        exp = f", expires {self.expiration_date}" if self.expiration_date else ""
        return f"Lot {self.lot_id}: {self.quantity_on_hand:g} {self.unit} of {self.ingredient_id}{exp}"


class LotIssue(BaseModel):
    """Quantity drawn from one lot by an issuance."""
    lot_id: str
    quantity: float = Field(..., gt=0)
    unit_cost: float = Field(default=0.0, ge=0)
    expiration_date: Optional[Date] = None

    model_config = ConfigDict(frozen=True)

    @property
    def extended_cost(self) -> float:
        """Quantity times unit cost."""
        return self.quantity * self.unit_cost


class IssueResult(BaseModel):
    """
    Outcome of a FIFO issuance request.

    A shortfall is reported here (``fulfilled`` False) rather than raised so
    the caller can substitute or flag the deficit.
    """
    ingredient_id: str
    site_id: str
    quantity_requested: float = Field(..., ge=0)
    lots: List[LotIssue] = Field(default_factory=list)
    fulfilled: bool
    remaining_on_hand: float = Field(default=0.0, ge=0)
    below_par: bool = False

    model_config = ConfigDict(frozen=True)

    @property
    def quantity_issued(self) -> float:
        """Total quantity allocated across lots."""
        return sum(lot.quantity for lot in self.lots)

    @property
    def shortfall(self) -> float:
        """Quantity that could not be issued."""
        return max(self.quantity_requested - self.quantity_issued, 0.0)

    @property
    def total_cost(self) -> float:
        """Extended cost of everything issued."""
        return sum(lot.extended_cost for lot in self.lots)


class ParLevelCalculation(BaseModel):
    """Par level, reorder point and safety stock derived from usage history."""
    avg_daily_usage: float = Field(..., gt=0)
    std_dev: float = Field(..., ge=0)
    lead_time_days: float = Field(..., ge=0)
    delivery_frequency_days: float = Field(..., ge=0)
    service_level: float
    z_score: float
    safety_stock: float = Field(..., ge=0)
    reorder_point: float = Field(..., ge=0)
    par_level: float = Field(..., ge=0)
    coefficient_of_variation: float = Field(..., ge=0)
    high_variability: bool

    model_config = ConfigDict(frozen=True)


class EOQResult(BaseModel):
    """Economic order quantity and the resulting annual cost picture."""
    annual_demand: float = Field(..., ge=0)
    ordering_cost: float = Field(..., ge=0)
    holding_cost_per_unit: float = Field(..., gt=0)
    optimal_order_quantity: float = Field(..., ge=0)
    orders_per_year: float = Field(..., ge=0)
    average_inventory: float = Field(..., ge=0)
    annual_ordering_cost: float = Field(..., ge=0)
    annual_holding_cost: float = Field(..., ge=0)
    total_annual_cost: float = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)

    @property
    def rounded_order_quantity(self) -> int:
        """Optimal order quantity rounded to a whole unit."""
        return int(round(self.optimal_order_quantity))


class AlertAction(str, Enum):
    """What staff should do with an expiring lot."""
    USE_FIRST = "USE_FIRST"
    DISCARD = "DISCARD"


class ExpirationAlert(BaseModel):
    """Lot expiring within the alert window (or already expired)."""
    ingredient_id: str
    site_id: str
    lot_id: str
    quantity_on_hand: float = Field(..., gt=0)
    expiration_date: Date
    days_until_expiry: int
    action: AlertAction

    model_config = ConfigDict(frozen=True)


class StockStatus(str, Enum):
    """Stock classification against reorder point and par level."""
    OUT_OF_STOCK = "Out of Stock"
    REORDER_NOW = "Reorder Now"
    BELOW_PAR = "Below Par"
    ADEQUATE = "Adequate"


class StockStatusRecord(BaseModel):
    """Current stock position of one ingredient at one site."""
    ingredient_id: str
    site_id: str
    quantity_on_hand: float = Field(..., ge=0)
    reorder_point: Optional[float] = None
    par_level: Optional[float] = None
    status: StockStatus

    model_config = ConfigDict(frozen=True)

    @property
    def below_par(self) -> bool:
        """True when on-hand is under the par level."""
        return self.par_level is not None and self.quantity_on_hand < self.par_level


class CountVariance(BaseModel):
    """Difference between a physical count and the perpetual record."""
    ingredient_id: str
    site_id: str
    lot_id: str
    perpetual_quantity: float
    counted_quantity: float = Field(..., ge=0)

    model_config = ConfigDict(frozen=True)

    @property
    def variance(self) -> float:
        """Counted minus perpetual."""
        return self.counted_quantity - self.perpetual_quantity
