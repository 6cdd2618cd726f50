"""Movement domain model."""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from inventory_ledger.domain.costing import CostState


@dataclass
class Movement:
    """
    Stock effect of one invoice line on one product (ledger entry).

    Chain order is (effective_time, invoice_id), never insertion order.
    effective_time is expected in the business timezone.
    """

    product_id: int
    invoice_id: int
    effective_time: datetime
    quantity_delta: Decimal
    unit_cost: Decimal
    quantity_before: Decimal = field(default_factory=lambda: Decimal("0"))
    quantity_after: Decimal = field(default_factory=lambda: Decimal("0"))
    avg_cost_after: Decimal = field(default_factory=lambda: Decimal("0"))
    movement_id: Optional[int] = None
    recorded_at: Optional[datetime] = field(default=None)

    @property
    def sort_key(self) -> tuple[datetime, int]:
        """Chain ordering key."""
        return (self.effective_time, self.invoice_id)

    @property
    def business_date(self) -> date:
        """Calendar date whose snapshot this movement lands in."""
        return self.effective_time.date()

    @property
    def after_state(self) -> CostState:
        """Running totals after this movement."""
        return CostState(quantity=self.quantity_after, avg_cost=self.avg_cost_after)
