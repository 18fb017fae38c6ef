"""
Lot-level inventory ledger with expiration-based FIFO issuance.

Issuance draws from the lots of one (ingredient, site) in order of
expiration date, soonest first. Lots at or past their expiration date are
never issued. Lots without an expiration date go last, oldest receipt
first. A shortage is reported on the result, never raised.

Every read-modify-write on an (ingredient, site) runs under a lock keyed by
that pair, so concurrent pipeline runs cannot double-issue the same stock.
"""

from collections import defaultdict
from datetime import date as Date, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Tuple
import logging
import threading

from ..constants import DEFAULT_STORAGE_LOCATIONS, QUANTITY_TOLERANCE
from ..exceptions import InvalidParameters, RecordNotFound
from ..models.inventory import CountVariance, InventoryLot, IssueResult, LotIssue
from ..persistence.repositories import IngredientRepository, InventoryLotRepository
from ..units.converter import UnitConverter

logger = logging.getLogger(__name__)


def fifo_order(lots: List[InventoryLot]) -> List[InventoryLot]:
    """Sort lots for issuance: expiration ascending, undated lots last, then receipt date."""
    return sorted(
        lots,
        key=lambda lot: (
            lot.expiration_date is None,
            lot.expiration_date or Date.max,
            lot.received_date,
            lot.lot_id,
        ),
    )


class InventoryLedger:
    """
    Perpetual inventory for all sites, kept as lots.

    Example:
        ledger = InventoryLedger(lot_repository, ingredient_repository)
        ledger.receive("ING-FLOUR", "site-1", "LOT-1", 50, "lb", unit_cost=0.42)
        result = ledger.issue("ING-FLOUR", "site-1", 12)
        if not result.fulfilled:
            ...
    """

    def __init__(
        self,
        lot_repository: InventoryLotRepository,
        ingredient_repository: Optional[IngredientRepository] = None,
        clock: Callable[[], Date] = Date.today,
        converter: Optional[UnitConverter] = None,
    ):
        self.lot_repository = lot_repository
        self.ingredient_repository = ingredient_repository
        self.clock = clock
        self.converter = converter or UnitConverter()
        self._locks: Dict[Tuple[str, str], threading.Lock] = defaultdict(threading.Lock)
        self._locks_guard = threading.Lock()

    def _lock_for(self, ingredient_id: str, site_id: str) -> threading.Lock:
        with self._locks_guard:
            return self._locks[(ingredient_id, site_id)]

    def _get_lot(self, ingredient_id: str, site_id: str, lot_id: str) -> InventoryLot:
        for lot in self.lot_repository.list_lots(ingredient_id, site_id):
            if lot.lot_id == lot_id:
                return lot
        raise RecordNotFound(
            f"Lot {lot_id} not found",
            {"ingredient_id": ingredient_id, "site_id": site_id, "lot_id": lot_id},
        )

    def _store(self, lot: InventoryLot) -> Optional[InventoryLot]:
        """Save a lot, or delete it once it reaches zero."""
        if lot.quantity_on_hand <= QUANTITY_TOLERANCE:
            self.lot_repository.delete_lot(lot.ingredient_id, lot.site_id, lot.lot_id)
            logger.debug(f"Lot {lot.lot_id} of {lot.ingredient_id} at {lot.site_id} depleted")
            return None
        self.lot_repository.save_lot(lot)
        return lot

    def _total(self, lots: Iterable[InventoryLot], unit: Optional[str]) -> float:
        if unit is None:
            return sum(lot.quantity_on_hand for lot in lots)
        return sum(self.converter.convert(lot.quantity_on_hand, lot.unit, unit) for lot in lots)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lots(self, ingredient_id: str, site_id: str) -> List[InventoryLot]:
        """Lots of an ingredient at a site, in issuance order."""
        return fifo_order(self.lot_repository.list_lots(ingredient_id, site_id))

    def on_hand(
        self,
        ingredient_id: str,
        site_id: str,
        as_of: Optional[Date] = None,
        unit: Optional[str] = None,
    ) -> float:
        """
        Total on-hand quantity.

        Args:
            ingredient_id: Ingredient
            site_id: Site
            as_of: If given, only lots still usable on that date are counted
            unit: If given, lot quantities are converted to this unit
        """
        lots = self.lot_repository.list_lots(ingredient_id, site_id)
        if as_of is not None:
            lots = [lot for lot in lots if not lot.is_expired(as_of)]
        return self._total(lots, unit)

    # ------------------------------------------------------------------
    # Issuance
    # ------------------------------------------------------------------

    def issue(
        self,
        ingredient_id: str,
        site_id: str,
        quantity_needed: float,
        as_of: Optional[Date] = None,
        unit: Optional[str] = None,
    ) -> IssueResult:
        """
        Issue stock by expiration-based FIFO.

        Args:
            ingredient_id: Ingredient to issue
            site_id: Site to issue from
            quantity_needed: Quantity requested
            as_of: Issue date (defaults to the ledger clock)
            unit: Unit of ``quantity_needed`` (defaults to each lot's own unit)

        Returns:
            IssueResult; ``fulfilled`` is False when stock ran out. Lot issue
            quantities are expressed in the requested unit; ``remaining_on_hand``
            counts unexpired lots in the ingredient common unit.

        Raises:
            InvalidParameters: If quantity_needed is negative
            UnconvertibleUnits: If a lot cannot be expressed in the requested unit
                (no lot is changed)
        """
        if quantity_needed < 0:
            raise InvalidParameters(
                "quantity_needed must be non-negative",
                {"ingredient_id": ingredient_id, "quantity_needed": quantity_needed},
            )
        as_of = as_of or self.clock()
        ingredient = (
            self.ingredient_repository.get(ingredient_id) if self.ingredient_repository is not None else None
        )
        stock_unit = ingredient.common_unit if ingredient is not None else unit

        with self._lock_for(ingredient_id, site_id):
            all_lots = self.lot_repository.list_lots(ingredient_id, site_id)
            candidates = fifo_order([
                lot for lot in all_lots
                if lot.quantity_on_hand > 0 and not lot.is_expired(as_of)
            ])

            remaining = quantity_needed
            issues: List[LotIssue] = []
            updates: List[InventoryLot] = []

            # All conversions happen before any lot is written
            for lot in candidates:
                if remaining <= QUANTITY_TOLERANCE:
                    break
                request_unit = unit or lot.unit
                available = self.converter.convert(lot.quantity_on_hand, lot.unit, request_unit)
                take = min(available, remaining)
                if take >= available:
                    lot_take = lot.quantity_on_hand
                else:
                    lot_take = self.converter.convert(take, request_unit, lot.unit)

                issues.append(LotIssue(
                    lot_id=lot.lot_id,
                    quantity=take,
                    unit_cost=lot.unit_cost * lot_take / take,
                    expiration_date=lot.expiration_date,
                ))
                updates.append(lot.with_quantity(max(lot.quantity_on_hand - lot_take, 0.0)))
                remaining -= take

            after_issue = {lot.lot_id: lot for lot in candidates}
            after_issue.update((lot.lot_id, lot) for lot in updates)
            remaining_on_hand = self._total(after_issue.values(), stock_unit)

            for lot, issue in zip(updates, issues):
                self._store(lot)
                logger.debug(f"Issued {issue.quantity:g} from lot {lot.lot_id} of {ingredient_id} at {site_id}")

        fulfilled = remaining <= QUANTITY_TOLERANCE
        if not fulfilled:
            logger.warning(
                f"Partial issue of {ingredient_id} at {site_id}: "
                f"{quantity_needed - remaining:g} of {quantity_needed:g} available"
            )

        return IssueResult(
            ingredient_id=ingredient_id,
            site_id=site_id,
            quantity_requested=quantity_needed,
            lots=issues,
            fulfilled=fulfilled,
            remaining_on_hand=remaining_on_hand,
            below_par=(
                ingredient is not None
                and ingredient.par_level is not None
                and remaining_on_hand < ingredient.par_level
            ),
        )

    # ------------------------------------------------------------------
    # Receiving, counts and adjustments
    # ------------------------------------------------------------------

    def receive(
        self,
        ingredient_id: str,
        site_id: str,
        lot_id: str,
        quantity: float,
        unit: str,
        unit_cost: float = 0.0,
        received_date: Optional[Date] = None,
        expiration_date: Optional[Date] = None,
        storage_location: Optional[str] = None,
    ) -> InventoryLot:
        """
        Receive stock into a lot.

        Receiving into an existing lot ID adds to its quantity and updates
        its unit cost. New lots take their storage location from the
        ingredient's storage type and, when no expiration is given, expire
        ``shelf_life_days`` after receipt.

        Raises:
            InvalidParameters: If quantity is not positive
        """
        if quantity <= 0:
            raise InvalidParameters(
                "Received quantity must be positive",
                {"ingredient_id": ingredient_id, "lot_id": lot_id, "quantity": quantity},
            )
        received_date = received_date or self.clock()

        ingredient = None
        if self.ingredient_repository is not None:
            ingredient = self.ingredient_repository.get(ingredient_id)

        with self._lock_for(ingredient_id, site_id):
            existing = None
            for lot in self.lot_repository.list_lots(ingredient_id, site_id):
                if lot.lot_id == lot_id:
                    existing = lot
                    break

            if existing is not None:
                added = self.converter.convert(quantity, unit, existing.unit)
                lot = existing.with_quantity(existing.quantity_on_hand + added, unit_cost=unit_cost)
            else:
                if storage_location is None:
                    storage_type = ingredient.storage_type.value if ingredient else "Dry"
                    storage_location = DEFAULT_STORAGE_LOCATIONS.get(storage_type, "Dry Storage")
                if expiration_date is None and ingredient is not None and ingredient.shelf_life_days:
                    expiration_date = received_date + timedelta(days=ingredient.shelf_life_days)
                lot = InventoryLot(
                    ingredient_id=ingredient_id,
                    site_id=site_id,
                    lot_id=lot_id,
                    quantity_on_hand=quantity,
                    unit=unit,
                    unit_cost=unit_cost,
                    received_date=received_date,
                    expiration_date=expiration_date,
                    storage_location=storage_location,
                )
            self.lot_repository.save_lot(lot)

        logger.info(f"Received {quantity:g} {unit} of {ingredient_id} into lot {lot_id} at {site_id}")
        return lot

    def physical_count(
        self,
        ingredient_id: str,
        site_id: str,
        lot_id: str,
        counted_quantity: float,
    ) -> CountVariance:
        """
        Set a lot to its physically counted quantity.

        Returns:
            CountVariance (counted minus perpetual)

        Raises:
            RecordNotFound: If the lot does not exist
        """
        with self._lock_for(ingredient_id, site_id):
            lot = self._get_lot(ingredient_id, site_id, lot_id)
            variance = CountVariance(
                ingredient_id=ingredient_id,
                site_id=site_id,
                lot_id=lot_id,
                perpetual_quantity=lot.quantity_on_hand,
                counted_quantity=counted_quantity,
            )
            self._store(lot.with_quantity(counted_quantity))

        if variance.variance:
            logger.info(f"Count variance on lot {lot_id} of {ingredient_id}: {variance.variance:+g}")
        return variance

    def adjust(
        self,
        ingredient_id: str,
        site_id: str,
        lot_id: str,
        delta: float,
        reason: str,
    ) -> Optional[InventoryLot]:
        """
        Adjust a lot by ``delta`` (waste, spoilage, correction).

        Returns:
            Updated lot, or None once the lot reaches zero

        Raises:
            RecordNotFound: If the lot does not exist
            InvalidParameters: If the adjustment would make the lot negative
        """
        with self._lock_for(ingredient_id, site_id):
            lot = self._get_lot(ingredient_id, site_id, lot_id)
            new_quantity = lot.quantity_on_hand + delta
            if new_quantity < -QUANTITY_TOLERANCE:
                raise InvalidParameters(
                    "Adjustment would make lot quantity negative",
                    {"lot_id": lot_id, "on_hand": lot.quantity_on_hand, "delta": delta},
                )
            updated = self._store(lot.with_quantity(max(new_quantity, 0.0)))

        logger.info(f"Adjusted lot {lot_id} of {ingredient_id} at {site_id} by {delta:+g}: {reason}")
        return updated

    def transfer(
        self,
        ingredient_id: str,
        from_site_id: str,
        to_site_id: str,
        quantity: float,
        as_of: Optional[Date] = None,
    ) -> IssueResult:
        """
        Move stock between sites.

        Stock leaves the source by FIFO and arrives under the same lot IDs,
        costs and expiration dates.

        Returns:
            IssueResult for the source site (may be partial)
        """
        if from_site_id == to_site_id:
            raise InvalidParameters("Transfer source and destination are the same", {"site_id": from_site_id})

        source_lots = {lot.lot_id: lot for lot in self.lot_repository.list_lots(ingredient_id, from_site_id)}
        result = self.issue(ingredient_id, from_site_id, quantity, as_of=as_of)

        for issued in result.lots:
            source = source_lots[issued.lot_id]
            self.receive(
                ingredient_id,
                to_site_id,
                issued.lot_id,
                issued.quantity,
                source.unit,
                unit_cost=issued.unit_cost,
                received_date=source.received_date,
                expiration_date=issued.expiration_date,
                storage_location=source.storage_location,
            )

        logger.info(
            f"Transferred {result.quantity_issued:g} of {ingredient_id} "
            f"from {from_site_id} to {to_site_id}"
        )
        return result
