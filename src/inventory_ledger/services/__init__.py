"""Service layer - ledger orchestration."""

from inventory_ledger.services.coordinator import TransactionCoordinator
from inventory_ledger.services.recompute_engine import RecomputeEngine
from inventory_ledger.services.position_service import PositionService
from inventory_ledger.services.invoice_service import InvoiceService

__all__ = [
    "TransactionCoordinator",
    "RecomputeEngine",
    "PositionService",
    "InvoiceService",
]
