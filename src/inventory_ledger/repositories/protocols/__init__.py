"""Repository protocol definitions (interfaces)."""

from inventory_ledger.repositories.protocols.movement_repo import MovementRepository
from inventory_ledger.repositories.protocols.snapshot_repo import SnapshotRepository
from inventory_ledger.repositories.protocols.invoice_repo import InvoiceRepository
from inventory_ledger.repositories.protocols.lock_repo import ProductLockRepository

__all__ = [
    "MovementRepository",
    "SnapshotRepository",
    "InvoiceRepository",
    "ProductLockRepository",
]
