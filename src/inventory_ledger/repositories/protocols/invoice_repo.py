"""Invoice repository protocol."""

from typing import Protocol, Optional

from inventory_ledger.domain.models import Invoice, InvoiceLine, InvoiceType


class InvoiceRepository(Protocol):
    """Interface for invoice data access."""

    def create(self, invoice: Invoice) -> Invoice:
        """Persist a new invoice with its lines."""
        ...

    def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        """Retrieve invoice by ID."""
        ...

    def replace_lines(
        self,
        invoice_id: int,
        lines: list[InvoiceLine],
        invoice_type: Optional[InvoiceType] = None,
    ) -> Invoice:
        """Swap an invoice's lines (and optionally its type)."""
        ...

    def remove_line(self, invoice_id: int, product_id: int) -> None:
        """Delete one product line."""
        ...

    def delete(self, invoice_id: int) -> None:
        """Delete an invoice and its lines (hard delete)."""
        ...
