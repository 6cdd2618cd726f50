"""Pydantic schemas validating input before any ledger transaction opens."""

from inventory_ledger.schemas.base import parse_request
from inventory_ledger.schemas.mutation import MutationEventRequest, to_mutation_event
from inventory_ledger.schemas.invoice import (
    InvoiceLineRequest,
    InvoiceCreateRequest,
    InvoiceUpdateRequest,
)

__all__ = [
    "parse_request",
    "MutationEventRequest",
    "to_mutation_event",
    "InvoiceLineRequest",
    "InvoiceCreateRequest",
    "InvoiceUpdateRequest",
]
