"""Expiration alerts, stock classification and the per-site alert roll-up."""

from dataclasses import dataclass, field
from datetime import date as Date
from typing import Iterable, List, Optional
import logging

from ..constants import DEFAULT_ALERT_WINDOW_DAYS
from ..models.inventory import (
    AlertAction,
    ExpirationAlert,
    InventoryLot,
    StockStatus,
    StockStatusRecord,
)
from ..persistence.repositories import IngredientRepository, InventoryLotRepository

logger = logging.getLogger(__name__)


def check_expirations(
    lots: Iterable[InventoryLot],
    as_of: Date,
    alert_window_days: int = DEFAULT_ALERT_WINDOW_DAYS,
) -> List[ExpirationAlert]:
    """
    Alerts for lots expiring within the window, soonest first.

    Lots at or past expiration are flagged DISCARD; the rest USE_FIRST.
    Empty lots and lots without an expiration date are ignored.
    """
    alerts = []
    for lot in lots:
        days = lot.days_until_expiry(as_of)
        if days is None or lot.quantity_on_hand <= 0 or days > alert_window_days:
            continue
        alerts.append(ExpirationAlert(
            ingredient_id=lot.ingredient_id,
            site_id=lot.site_id,
            lot_id=lot.lot_id,
            quantity_on_hand=lot.quantity_on_hand,
            expiration_date=lot.expiration_date,
            days_until_expiry=days,
            action=AlertAction.DISCARD if days <= 0 else AlertAction.USE_FIRST,
        ))
    alerts.sort(key=lambda a: (a.days_until_expiry, a.ingredient_id, a.lot_id))
    return alerts


def classify_stock(
    on_hand: float,
    reorder_point: Optional[float],
    par_level: Optional[float],
) -> StockStatus:
    """Out of Stock / Reorder Now / Below Par / Adequate."""
    if on_hand <= 0:
        return StockStatus.OUT_OF_STOCK
    if reorder_point is not None and on_hand < reorder_point:
        return StockStatus.REORDER_NOW
    if par_level is not None and on_hand < par_level:
        return StockStatus.BELOW_PAR
    return StockStatus.ADEQUATE


@dataclass
class InventoryAlerts:
    """Below-par and expiration alerts for one site."""
    site_id: str
    as_of: Date
    below_par: List[StockStatusRecord] = field(default_factory=list)
    expiring_soon: List[ExpirationAlert] = field(default_factory=list)
    expired: List[ExpirationAlert] = field(default_factory=list)

    @property
    def total(self) -> int:
        """Number of alerts."""
        return len(self.below_par) + len(self.expiring_soon) + len(self.expired)


def stock_status(
    site_id: str,
    ingredient_repository: IngredientRepository,
    lot_repository: InventoryLotRepository,
) -> List[StockStatusRecord]:
    """Stock status of every known ingredient at a site."""
    records = []
    for ingredient in ingredient_repository.list_all():
        lots = lot_repository.list_lots(ingredient.ingredient_id, site_id)
        on_hand = sum(lot.quantity_on_hand for lot in lots)
        records.append(StockStatusRecord(
            ingredient_id=ingredient.ingredient_id,
            site_id=site_id,
            quantity_on_hand=on_hand,
            reorder_point=ingredient.reorder_point,
            par_level=ingredient.par_level,
            status=classify_stock(on_hand, ingredient.reorder_point, ingredient.par_level),
        ))
    return records


def inventory_alerts(
    site_id: str,
    as_of: Date,
    ingredient_repository: IngredientRepository,
    lot_repository: InventoryLotRepository,
    alert_window_days: int = DEFAULT_ALERT_WINDOW_DAYS,
) -> InventoryAlerts:
    """Collect below-par, expiring-soon and expired alerts for a site."""
    expirations = check_expirations(lot_repository.list_site_lots(site_id), as_of, alert_window_days)
    result = InventoryAlerts(
        site_id=site_id,
        as_of=as_of,
        below_par=[
            record for record in stock_status(site_id, ingredient_repository, lot_repository)
            if record.below_par
        ],
        expiring_soon=[a for a in expirations if a.action == AlertAction.USE_FIRST],
        expired=[a for a in expirations if a.action == AlertAction.DISCARD],
    )
    if result.total:
        logger.info(
            f"Inventory alerts for {site_id} on {as_of}: {len(result.below_par)} below par, "
            f"{len(result.expiring_soon)} expiring, {len(result.expired)} expired"
        )
    return result
