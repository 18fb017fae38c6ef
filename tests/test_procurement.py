"""Tests for purchase-order drafting."""

import pytest
from datetime import date

from kitchenplan.config import PlanningConfig
from kitchenplan.exceptions import RecordNotFound
from kitchenplan.models import InventoryLot, OrderReason
from kitchenplan.persistence import InMemoryHistoryRepository, InMemoryInventoryLotRepository
from kitchenplan.procurement import ProcurementGenerator


AS_OF = date(2026, 1, 5)


class TestProcurementGenerator:
    """Order lines from projected shortages."""

    def test_stock_at_reorder_point_is_ordered(self, ingredient_repository, lot_repository):
        draft = ProcurementGenerator(ingredient_repository, lot_repository).generate("site-1", {}, AS_OF)

        # Rice sits exactly at its reorder point of 20; chicken (30) is above 15
        assert [l.ingredient_id for l in draft.lines] == ["ING-RICE"]
        assert draft.lines[0].reason == OrderReason.BELOW_REORDER_POINT
        assert draft.lines[0].order_quantity == pytest.approx(30.0)
        assert draft.total_estimated_cost == pytest.approx(36.0)

    def test_nothing_to_order(self, ingredient_repository):
        lots = [InventoryLot(ingredient_id="ING-RICE", site_id="site-1", lot_id="RI-1",
                             quantity_on_hand=45, unit="lb", received_date=AS_OF),
                InventoryLot(ingredient_id="ING-CHICKEN", site_id="site-1", lot_id="CH-1",
                             quantity_on_hand=35, unit="lb", received_date=AS_OF)]

        draft = ProcurementGenerator(ingredient_repository, InMemoryInventoryLotRepository(lots)).generate(
            "site-1", {}, AS_OF
        )

        assert draft.is_empty()

    def test_forecast_shortage_orders_up_to_par(self, ingredient_repository, lot_repository):
        draft = ProcurementGenerator(ingredient_repository, lot_repository).generate(
            "site-1", {"ING-RICE": 25.0}, AS_OF
        )

        line = draft.lines[0]
        assert line.ingredient_id == "ING-RICE"
        assert line.reason == OrderReason.FORECAST_SHORTAGE
        assert line.projected_on_hand == pytest.approx(-5.0)
        # par 50 - projected (-5)
        assert line.order_quantity == pytest.approx(55.0)
        assert line.preferred_vendor_id == "VEN-DRY"

    def test_below_reorder_point(self, ingredient_repository, lot_repository):
        draft = ProcurementGenerator(ingredient_repository, lot_repository).generate(
            "site-1", {"ING-CHICKEN": 20.0}, AS_OF
        )

        line = draft.lines[0]
        assert line.reason == OrderReason.BELOW_REORDER_POINT
        assert line.order_quantity == pytest.approx(30.0)
        assert line.estimated_cost == pytest.approx(105.0)

    def test_out_of_stock(self, ingredient_repository, lot_repository):
        lot_repository.delete_lot("ING-CHICKEN", "site-1", "CH-1")

        draft = ProcurementGenerator(ingredient_repository, lot_repository).generate("site-1", {}, AS_OF)

        assert (draft.lines[0].ingredient_id, draft.lines[0].reason) == ("ING-CHICKEN", OrderReason.OUT_OF_STOCK)
        assert draft.lines[0].order_quantity == pytest.approx(40.0)

    def test_expired_lots_do_not_count(self, ingredient_repository, lot_repository):
        draft = ProcurementGenerator(ingredient_repository, lot_repository).generate(
            "site-1", {}, date(2026, 1, 26)
        )
        assert draft.lines[0].reason == OrderReason.OUT_OF_STOCK

    def test_shortfall_without_par_level(self, ingredient_repository, lot_repository):
        draft = ProcurementGenerator(ingredient_repository, lot_repository).generate(
            "site-1", {"ING-OIL": 9.0}, AS_OF
        )

        line = draft.lines[0]
        assert line.ingredient_id == "ING-OIL"
        assert line.order_quantity == pytest.approx(1.0)

    def test_usage_converted_lots(self, ingredient_repository):
        lots = [InventoryLot(ingredient_id="ING-RICE", site_id="site-1", lot_id="RI-OZ",
                             quantity_on_hand=480, unit="oz", received_date=AS_OF)]

        draft = ProcurementGenerator(ingredient_repository, InMemoryInventoryLotRepository(lots)).generate(
            "site-1", {"ING-RICE": 5.0}, AS_OF
        )

        # 30 lb on hand - 5 lb usage = 25 lb, above the reorder point of 20
        assert [l.ingredient_id for l in draft.lines] == ["ING-CHICKEN"]

    def test_lines_grouped_by_vendor(self, ingredient_repository, lot_repository):
        draft = ProcurementGenerator(ingredient_repository, lot_repository).generate(
            "site-1", {"ING-RICE": 25.0, "ING-CHICKEN": 20.0, "ING-OIL": 9.0}, AS_OF
        )

        assert [l.ingredient_id for l in draft.lines] == ["ING-CHICKEN", "ING-OIL", "ING-RICE"]
        grouped = draft.by_vendor()
        assert set(grouped) == {"VEN-PROTEIN", "VEN-DRY", None}

    def test_unknown_ingredient_raises(self, ingredient_repository, lot_repository):
        with pytest.raises(RecordNotFound):
            ProcurementGenerator(ingredient_repository, lot_repository).generate(
                "site-1", {"ING-MYSTERY": 1.0}, AS_OF
            )

    def test_round_up_to_eoq(self, ingredient_repository, lot_repository):
        config = PlanningConfig(round_orders_to_eoq=True, ordering_cost=50, holding_cost_percent=0.2)
        history = InMemoryHistoryRepository(usage={("ING-RICE", "site-1"): [10.0] * 30})

        draft = ProcurementGenerator(
            ingredient_repository, lot_repository, config=config, history_repository=history
        ).generate("site-1", {"ING-RICE": 25.0}, AS_OF)

        # sqrt(2 x 3650 x 50 / (0.2 x 1.20)) = 1233.2
        assert draft.lines[0].order_quantity == 1234
