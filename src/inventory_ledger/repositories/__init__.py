"""Repository layer - data access abstractions and implementations."""

from inventory_ledger.repositories.protocols import (
    MovementRepository,
    SnapshotRepository,
    InvoiceRepository,
    ProductLockRepository,
)

__all__ = [
    "MovementRepository",
    "SnapshotRepository",
    "InvoiceRepository",
    "ProductLockRepository",
]
