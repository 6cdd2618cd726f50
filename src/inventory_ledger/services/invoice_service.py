"""Thin invoice writer that drives the ledger."""

import logging
from datetime import datetime
from typing import Any, Callable

from inventory_ledger.core.exceptions import NotFoundError
from inventory_ledger.core.timezone import now_business, to_business
from inventory_ledger.domain.models import Invoice, InvoiceLine, MutationAction, MutationEvent
from inventory_ledger.repositories.protocols import InvoiceRepository
from inventory_ledger.schemas.base import parse_request
from inventory_ledger.schemas.invoice import InvoiceCreateRequest, InvoiceUpdateRequest
from inventory_ledger.services.coordinator import TransactionCoordinator
from inventory_ledger.services.recompute_engine import RecomputeEngine

logger = logging.getLogger(__name__)


class InvoiceService:
    """
    Owns invoice and line rows and notifies the ledger of every change.

    Each public method is one transaction: the invoice rows and every
    product's ledger effects commit together or not at all. Products are
    always processed in ascending id order so locks are taken in a fixed order.
    """

    def __init__(
        self,
        invoice_repo: InvoiceRepository,
        engine: RecomputeEngine,
        coordinator: TransactionCoordinator,
        clock: Callable[[], datetime] = now_business,
    ):
        self._invoices = invoice_repo
        self._engine = engine
        self._coordinator = coordinator
        self._clock = clock

    def get_invoice(self, invoice_id: int) -> Invoice:
        invoice = self._invoices.get_by_id(invoice_id)
        if not invoice:
            raise NotFoundError("Invoice", str(invoice_id))
        return invoice

    def create_invoice(self, data: Any) -> Invoice:
        """
        Create an invoice and one movement per line.

        Args:
            data: InvoiceCreateRequest or a mapping with invoice_type,
                invoice_date (optional, defaults to now) and lines.
        """
        request = parse_request(InvoiceCreateRequest, data)
        invoice_date = (
            to_business(request.invoice_date) if request.invoice_date else self._clock()
        )

        with self._coordinator.atomic():
            invoice = self._invoices.create(
                Invoice(
                    invoice_id=None,
                    invoice_type=request.invoice_type,
                    invoice_date=invoice_date,
                    lines=[line.to_line() for line in request.lines],
                )
            )
            for product_id in invoice.product_ids:
                line = invoice.line_for(product_id)
                self._notify(invoice, MutationAction.CREATE, line)

        logger.info(
            "Created %s invoice %s with %d lines",
            invoice.invoice_type.value, invoice.invoice_id, len(invoice.lines),
        )
        return invoice

    def update_invoice(self, invoice_id: int, data: Any) -> Invoice:
        """
        Replace an invoice's lines.

        Products kept on the invoice are edited in place, dropped products
        are deleted from the ledger and new products are created at the
        invoice's original effective time. Unchanged lines are left alone.
        """
        request = parse_request(InvoiceUpdateRequest, data)

        with self._coordinator.atomic():
            current = self.get_invoice(invoice_id)
            updated = self._invoices.replace_lines(
                invoice_id,
                [line.to_line() for line in request.lines],
                request.invoice_type,
            )

            for product_id in sorted(set(current.product_ids) | set(updated.product_ids)):
                old_line = current.line_for(product_id)
                new_line = updated.line_for(product_id)
                if new_line is None:
                    self._notify(current, MutationAction.DELETE, old_line)
                elif old_line is None:
                    self._notify(updated, MutationAction.CREATE, new_line)
                elif (
                    current.signed_quantity(old_line) != updated.signed_quantity(new_line)
                    or old_line.unit_price != new_line.unit_price
                ):
                    self._notify(updated, MutationAction.EDIT, new_line)

        logger.info("Updated invoice %s", invoice_id)
        return updated

    def delete_invoice(self, invoice_id: int) -> None:
        """Delete an invoice, its lines and their movements."""
        with self._coordinator.atomic():
            invoice = self.get_invoice(invoice_id)
            for product_id in invoice.product_ids:
                self._notify(invoice, MutationAction.DELETE, invoice.line_for(product_id))
            self._invoices.delete(invoice_id)

        logger.info("Deleted invoice %s", invoice_id)

    def delete_line(self, invoice_id: int, product_id: int) -> None:
        """Delete one product's line and its movement."""
        with self._coordinator.atomic():
            invoice = self.get_invoice(invoice_id)
            line = invoice.line_for(product_id)
            if line is None:
                raise NotFoundError("Invoice line", f"{invoice_id}/{product_id}")
            self._notify(invoice, MutationAction.DELETE, line)
            self._invoices.remove_line(invoice_id, product_id)

    def _notify(self, invoice: Invoice, action: MutationAction, line: InvoiceLine) -> None:
        if action == MutationAction.DELETE:
            event = MutationEvent(
                invoice_id=invoice.invoice_id,
                product_id=line.product_id,
                action=action,
            )
        else:
            event = MutationEvent(
                invoice_id=invoice.invoice_id,
                product_id=line.product_id,
                action=action,
                delta=invoice.signed_quantity(line),
                unit_cost=line.unit_price,
                effective_time=invoice.invoice_date,
            )
        self._engine.apply(event)
