"""Invoice and InvoiceLine domain models."""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional

from inventory_ledger.domain.models.enums import InvoiceType


@dataclass
class InvoiceLine:
    """A single product line. Quantity is always positive; direction comes from the invoice."""

    product_id: int
    quantity: Decimal
    unit_price: Decimal
    line_id: Optional[int] = None


@dataclass
class Invoice:
    """
    Purchase or sale invoice (owned by the invoicing side, not the ledger).

    invoice_date is the effective time of every movement the invoice causes.
    At most one line per product.
    """

    invoice_id: Optional[int]
    invoice_type: InvoiceType
    invoice_date: datetime
    lines: list[InvoiceLine] = field(default_factory=list)
    created_at: Optional[datetime] = field(default=None)
    updated_at: Optional[datetime] = field(default=None)

    def __post_init__(self) -> None:
        if isinstance(self.invoice_type, str):
            self.invoice_type = InvoiceType(self.invoice_type)

    def signed_quantity(self, line: InvoiceLine) -> Decimal:
        """Stock delta of a line: positive for purchases, negative for sales."""
        if self.invoice_type == InvoiceType.SELL:
            return -line.quantity
        return line.quantity

    def line_for(self, product_id: int) -> Optional[InvoiceLine]:
        for line in self.lines:
            if line.product_id == product_id:
                return line
        return None

    @property
    def product_ids(self) -> list[int]:
        return sorted(line.product_id for line in self.lines)
