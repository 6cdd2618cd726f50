"""Read-only position queries for reporting and inventory screens."""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

from inventory_ledger.core.exceptions import ValidationError
from inventory_ledger.core.timezone import (
    business_date,
    now_business,
    start_of_day,
    start_of_next_day,
)
from inventory_ledger.domain.costing import to_decimal
from inventory_ledger.domain.models import Movement, PositionSnapshot
from inventory_ledger.domain.views import PositionView
from inventory_ledger.repositories.protocols import MovementRepository, SnapshotRepository


class PositionService:
    """
    Answers position and history questions from the snapshot store.

    Takes no product locks: every read sees a committed state, either before
    or after any concurrent mutation.
    """

    def __init__(
        self,
        movement_repo: MovementRepository,
        snapshot_repo: SnapshotRepository,
        clock: Callable[[], datetime] = now_business,
    ):
        self._movements = movement_repo
        self._snapshots = snapshot_repo
        self._clock = clock

    def get_position(self, product_id: int, on_date: Optional[date] = None) -> PositionView:
        """
        Position of a product at the end of a date (default today).

        Days without a snapshot carry the nearest earlier one forward; a
        product with no history reports zero quantity and zero cost.
        """
        on_date = on_date or self._today()
        snapshot = self._snapshots.latest_as_of(product_id, on_date)
        if snapshot is None:
            return PositionView(product_id=product_id, as_of=on_date)
        return self._to_view(snapshot, on_date)

    def get_movements(
        self,
        product_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[Movement]:
        """Movements of a product between two business dates (inclusive), in chain order."""
        if start_date and end_date and start_date > end_date:
            raise ValidationError(f"start_date {start_date} is after end_date {end_date}")
        return self._movements.list_by_product(
            product_id,
            start=start_of_day(start_date) if start_date else None,
            end_before=start_of_next_day(end_date) if end_date else None,
        )

    def list_positions(self, on_date: Optional[date] = None) -> list[PositionView]:
        """Gap-filled position of every product with history, by product id."""
        on_date = on_date or self._today()
        return [self._to_view(s, on_date) for s in self._snapshots.list_as_of(on_date)]

    def low_stock(self, threshold, on_date: Optional[date] = None) -> list[PositionView]:
        """Products at or below ``threshold`` units, lowest quantity first."""
        threshold = to_decimal(threshold)
        views = [
            view for view in self.list_positions(on_date)
            if view.available_qty <= threshold
        ]
        return sorted(views, key=lambda v: (v.available_qty, v.product_id))

    def recent_movements(self, limit: int = 20) -> list[Movement]:
        """Latest movements across all products, newest first."""
        if limit <= 0:
            raise ValidationError("limit must be positive")
        return self._movements.list_recent(limit)

    def cost_history(
        self,
        product_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[PositionSnapshot]:
        """
        Stored snapshot rows in a date range.

        With neither date given only today's rows are returned.
        """
        if start_date is None and end_date is None:
            start_date = end_date = self._today()
        if start_date and end_date and start_date > end_date:
            raise ValidationError(f"start_date {start_date} is after end_date {end_date}")
        return self._snapshots.list_range(product_id, start_date, end_date)

    def _today(self) -> date:
        return business_date(self._clock())

    @staticmethod
    def _to_view(snapshot: PositionSnapshot, on_date: date) -> PositionView:
        return PositionView(
            product_id=snapshot.product_id,
            as_of=on_date,
            available_qty=snapshot.available_qty,
            avg_cost=snapshot.avg_cost,
            snapshot_date=snapshot.snapshot_date,
        )
