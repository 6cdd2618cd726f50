"""View models for service outputs."""

from inventory_ledger.domain.views.position import PositionView, RepairSummary

__all__ = [
    "PositionView",
    "RepairSummary",
]
