"""Position snapshot repository protocol for derived data."""

from datetime import date
from decimal import Decimal
from typing import Protocol, Optional

from inventory_ledger.domain.models import PositionSnapshot


class SnapshotRepository(Protocol):
    """Interface for per-product, per-date position snapshots."""

    def get(self, product_id: int, snapshot_date: date) -> Optional[PositionSnapshot]:
        """Snapshot for an exact date, or None."""
        ...

    def upsert(
        self,
        product_id: int,
        snapshot_date: date,
        available_qty: Decimal,
        avg_cost: Decimal,
    ) -> PositionSnapshot:
        """Insert or update the snapshot for a date."""
        ...

    def latest_as_of(self, product_id: int, snapshot_date: date) -> Optional[PositionSnapshot]:
        """Nearest existing snapshot on or before a date."""
        ...

    def latest(self, product_id: int) -> Optional[PositionSnapshot]:
        """Most recent snapshot of a product."""
        ...

    def list_range(
        self,
        product_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[PositionSnapshot]:
        """Snapshots in [start, end], by product then date."""
        ...

    def list_as_of(self, snapshot_date: date) -> list[PositionSnapshot]:
        """For every product, its nearest snapshot on or before a date."""
        ...

    def list_product_ids(self) -> list[int]:
        """Products that have at least one snapshot."""
        ...
