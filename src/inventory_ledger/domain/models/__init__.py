"""Domain models package."""

from inventory_ledger.domain.models.enums import MutationAction, InvoiceType, OversellPolicy
from inventory_ledger.domain.models.movement import Movement
from inventory_ledger.domain.models.snapshot import PositionSnapshot
from inventory_ledger.domain.models.invoice import Invoice, InvoiceLine
from inventory_ledger.domain.models.mutation import MutationEvent

__all__ = [
    "MutationAction",
    "InvoiceType",
    "OversellPolicy",
    "Movement",
    "PositionSnapshot",
    "Invoice",
    "InvoiceLine",
    "MutationEvent",
]
