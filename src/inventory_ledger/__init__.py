"""Inventory valuation ledger: per-product movement chains with weighted-average cost."""

__version__ = "0.1.0"
