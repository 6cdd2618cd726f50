"""Position snapshot model for derived end-of-day state."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional


@dataclass
class PositionSnapshot:
    """
    Derived end-of-day quantity and average cost per product/date.

    IMPORTANT: Never edit directly; always derive from the movement ledger.
    """

    product_id: int
    snapshot_date: date
    available_qty: Decimal = field(default_factory=lambda: Decimal("0"))
    avg_cost: Decimal = field(default_factory=lambda: Decimal("0"))
    updated_at: Optional[datetime] = field(default=None)
