"""
Tests for CostResolver.

Covers:
- Weighted average over recent inbound movements
- Fallback to the product's recorded cost, then to zero
- Branch and movement-type filtering, lookback window
"""

from datetime import timedelta
from decimal import Decimal

from stockout_kernel.domain.settings import CostingSettings
from stockout_kernel.models.movement import InventoryMovement
from stockout_kernel.services.cost_resolver import CostResolver


def _movement(session, record, movement_type, quantity, unit_cost, when):
    session.add(
        InventoryMovement(
            inventory_id=record.id,
            product_id=record.product_id,
            branch_id=record.branch_id,
            movement_type=movement_type,
            quantity=Decimal(quantity),
            unit_cost=Decimal(unit_cost) if unit_cost is not None else None,
            reference_number="PO-TEST",
            movement_date=when,
        )
    )
    session.flush()


class TestWeightedAverage:

    def test_weighted_by_quantity(self, session, inventory, products, branches, deterministic_clock):
        now = deterministic_clock.now()
        record = inventory["widget_main"]
        _movement(session, record, "purchase", "10", "40.00", now - timedelta(days=2))
        _movement(session, record, "purchase", "30", "60.00", now - timedelta(days=1))

        resolution = CostResolver(session).resolve(products["widget"].id, branches["main"].id)

        assert resolution.source == "weighted_average"
        assert resolution.unit_cost == Decimal("55.0000")
        assert resolution.sample_size == 2

    def test_transfer_in_counts_as_inbound(self, session, inventory, products, branches, deterministic_clock):
        record = inventory["widget_north"]
        _movement(session, record, "transfer_in", "5", "42.00", deterministic_clock.now())

        resolution = CostResolver(session).resolve(products["widget"].id, branches["north"].id)

        assert resolution.unit_cost == Decimal("42.0000")

    def test_outbound_and_uncosted_movements_ignored(
        self, session, inventory, products, branches, deterministic_clock
    ):
        now = deterministic_clock.now()
        record = inventory["widget_main"]
        _movement(session, record, "purchase", "10", "30.00", now - timedelta(days=3))
        _movement(session, record, "stock_out_damaged", "-4", "99.00", now - timedelta(days=2))
        _movement(session, record, "purchase", "10", None, now - timedelta(days=1))

        resolution = CostResolver(session).resolve(products["widget"].id, branches["main"].id)

        assert resolution.unit_cost == Decimal("30.0000")
        assert resolution.sample_size == 1

    def test_other_branch_ignored(self, session, inventory, products, branches, deterministic_clock):
        _movement(session, inventory["widget_north"], "purchase", "10", "10.00", deterministic_clock.now())

        resolution = CostResolver(session).resolve(products["widget"].id, branches["main"].id)

        assert resolution.source == "product_cost"
        assert resolution.unit_cost == Decimal("50.00")

    def test_lookback_limits_to_newest(self, session, inventory, products, branches, deterministic_clock):
        now = deterministic_clock.now()
        record = inventory["widget_main"]
        _movement(session, record, "purchase", "10", "10.00", now - timedelta(days=5))
        _movement(session, record, "purchase", "10", "70.00", now - timedelta(days=1))

        resolver = CostResolver(session, CostingSettings(lookback_movements=1))
        resolution = resolver.resolve(products["widget"].id, branches["main"].id)

        assert resolution.unit_cost == Decimal("70.0000")

    def test_repeating_fraction_rounded_to_four_places(
        self, session, inventory, products, branches, deterministic_clock
    ):
        now = deterministic_clock.now()
        record = inventory["cable_main"]
        _movement(session, record, "purchase", "3", "10.00", now - timedelta(days=2))
        _movement(session, record, "purchase", "3", "10.00", now - timedelta(days=1))
        _movement(session, record, "purchase", "3", "10.01", now)

        resolution = CostResolver(session).resolve(products["cable"].id, branches["main"].id)

        assert resolution.unit_cost == Decimal("10.0033")


class TestFallbacks:

    def test_product_cost(self, session, inventory, products, branches):
        resolution = CostResolver(session).resolve(products["cable"].id, branches["main"].id)
        assert resolution.source == "product_cost"
        assert resolution.unit_cost == Decimal("20.00")

    def test_zero_when_nothing_known(self, session, inventory, products, branches, captured_logs):
        resolution = CostResolver(session).resolve(products["freebie"].id, branches["main"].id)

        assert resolution.unit_cost == Decimal("0")
        assert resolution.source == "none"
        warnings = [r for r in captured_logs() if r["message"] == "zero_unit_cost"]
        assert len(warnings) == 1
        assert warnings[0]["level"] == "WARNING"
        assert warnings[0]["product_id"] == str(products["freebie"].id)
