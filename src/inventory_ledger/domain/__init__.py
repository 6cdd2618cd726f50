"""Domain layer - pure business models with no external dependencies."""

from inventory_ledger.domain.costing import CostState, ZERO_STATE, next_state
from inventory_ledger.domain.models import (
    Movement,
    PositionSnapshot,
    Invoice,
    InvoiceLine,
    MutationEvent,
    MutationAction,
    InvoiceType,
    OversellPolicy,
)

__all__ = [
    "CostState",
    "ZERO_STATE",
    "next_state",
    "Movement",
    "PositionSnapshot",
    "Invoice",
    "InvoiceLine",
    "MutationEvent",
    "MutationAction",
    "InvoiceType",
    "OversellPolicy",
]
