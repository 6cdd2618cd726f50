"""
Unit tests for PositionService.

Tests cover:
- Gap-filled position lookups
- Movement history by inclusive date range
- Inventory listings (all positions, low stock, recent movements)
- Cost history defaults
"""

from datetime import date
from decimal import Decimal

import pytest

from inventory_ledger.core.exceptions import ValidationError
from inventory_ledger.services import PositionService, RecomputeEngine

from tests.conftest import DAY1, DAY2, DAY3, TODAY, business_datetime, assert_state


# =============================================================================
# POSITIONS
# =============================================================================


class TestGetPosition:
    """Tests for get_position()."""

    def test_unknown_product_is_zero(self, position_service: PositionService):
        view = position_service.get_position(42, DAY1)

        assert view.available_qty == Decimal("0")
        assert view.avg_cost == Decimal("0")
        assert view.snapshot_date is None
        assert not view.is_carried_forward

    def test_defaults_to_today(self, three_day_chain, position_service):
        view = position_service.get_position(1)

        assert view.as_of == TODAY
        assert_state(view, "120", "2.4167")

    def test_before_first_movement_is_zero(self, three_day_chain, position_service):
        view = position_service.get_position(1, date(2024, 5, 31))

        assert_state(view, "0", "0")

    def test_carries_forward_past_last_snapshot(self, three_day_chain, position_service):
        """
        GIVEN snapshots written through today
        WHEN a future date is asked for
        THEN the latest row is carried forward
        """
        view = position_service.get_position(1, date(2024, 7, 1))

        assert view.snapshot_date == TODAY
        assert view.is_carried_forward
        assert_state(view, "120", "2.4167")
        assert view.stock_value == Decimal("120") * Decimal("2.4167")

    def test_reads_each_day(self, three_day_chain, position_service):
        assert_state(position_service.get_position(1, DAY1), "100", "2.00")
        assert_state(position_service.get_position(1, DAY2), "70", "2.00")
        assert_state(position_service.get_position(1, DAY3), "120", "2.4167")


class TestGetMovements:
    """Tests for get_movements()."""

    def test_all_movements_in_chain_order(self, three_day_chain, position_service):
        movements = position_service.get_movements(1)

        assert [m.invoice_id for m in movements] == [1, 2, 3]

    def test_date_bounds_are_inclusive(self, three_day_chain, position_service):
        movements = position_service.get_movements(1, DAY2, DAY3)

        assert [m.invoice_id for m in movements] == [2, 3]

    def test_single_day(self, three_day_chain, position_service):
        movements = position_service.get_movements(1, DAY2, DAY2)

        assert [m.invoice_id for m in movements] == [2]

    def test_inverted_range_rejected(self, position_service):
        with pytest.raises(ValidationError):
            position_service.get_movements(1, DAY3, DAY1)


# =============================================================================
# LISTINGS
# =============================================================================


@pytest.fixture
def stocked(engine: RecomputeEngine) -> RecomputeEngine:
    """Three products with different stock levels as of June 10."""
    engine.create_movement(1, 1, Decimal("50"), Decimal("1.00"), business_datetime(2024, 6, 1))
    engine.create_movement(1, 2, Decimal("5"), Decimal("4.00"), business_datetime(2024, 6, 1))
    engine.create_movement(2, 3, Decimal("12"), Decimal("2.00"), business_datetime(2024, 6, 10))
    engine.create_movement(3, 2, Decimal("-3"), Decimal("6.00"), business_datetime(2024, 6, 11))
    return engine


class TestListings:
    """Tests for list_positions(), low_stock(), recent_movements() and cost_history()."""

    def test_list_positions_today(self, stocked, position_service):
        views = position_service.list_positions()

        assert [(v.product_id, v.available_qty) for v in views] == [
            (1, Decimal("50")),
            (2, Decimal("2")),
            (3, Decimal("12")),
        ]

    def test_list_positions_on_past_date(self, stocked, position_service):
        views = position_service.list_positions(date(2024, 6, 5))

        assert [(v.product_id, v.available_qty) for v in views] == [
            (1, Decimal("50")),
            (2, Decimal("5")),
        ]

    def test_low_stock_sorted_ascending(self, stocked, position_service):
        views = position_service.low_stock(Decimal("12"))

        assert [v.product_id for v in views] == [2, 3]

    def test_low_stock_threshold_is_inclusive(self, stocked, position_service):
        assert [v.product_id for v in position_service.low_stock(2)] == [2]
        assert position_service.low_stock(1) == []

    def test_recent_movements_newest_first(self, stocked, position_service):
        recent = position_service.recent_movements(limit=2)

        assert [(m.invoice_id, m.product_id) for m in recent] == [(3, 2), (2, 3)]

    def test_recent_movements_requires_positive_limit(self, position_service):
        with pytest.raises(ValidationError):
            position_service.recent_movements(limit=0)

    def test_cost_history_defaults_to_today(self, stocked, position_service):
        rows = position_service.cost_history()

        assert {r.snapshot_date for r in rows} == {TODAY}
        assert [r.product_id for r in rows] == [1, 2, 3]

    def test_cost_history_range_for_one_product(self, stocked, position_service):
        rows = position_service.cost_history(2, date(2024, 6, 10), date(2024, 6, 12))

        assert [(r.snapshot_date, r.available_qty) for r in rows] == [
            (date(2024, 6, 10), Decimal("5")),
            (date(2024, 6, 11), Decimal("2")),
            (date(2024, 6, 12), Decimal("2")),
        ]
