"""View models for ledger read and repair outputs."""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Optional


@dataclass
class PositionView:
    """Gap-filled position of one product as of a date."""

    product_id: int
    as_of: date
    available_qty: Decimal = field(default_factory=lambda: Decimal("0"))
    avg_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    snapshot_date: Optional[date] = None  # row the values came from; None = no history

    @property
    def is_carried_forward(self) -> bool:
        return self.snapshot_date is not None and self.snapshot_date < self.as_of

    @property
    def stock_value(self) -> Decimal:
        return self.available_qty * self.avg_cost


@dataclass
class RepairSummary:
    """Result of a batch snapshot repair."""

    as_of: date
    products_scanned: int = 0
    movements_corrected: int = 0
    snapshots_written: int = 0
    repaired_from: dict[int, date] = field(default_factory=dict)  # product -> first rewritten date

    @property
    def is_clean(self) -> bool:
        return self.movements_corrected == 0 and self.snapshots_written == 0
