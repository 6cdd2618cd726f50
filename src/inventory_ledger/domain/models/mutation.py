"""Mutation event: the ledger's input from the invoicing side."""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from inventory_ledger.domain.models.enums import MutationAction


@dataclass
class MutationEvent:
    """
    Notification that one invoice line changed for one product.

    - CREATE/EDIT require delta (signed) and unit_cost
    - DELETE needs only the (invoice_id, product_id) key
    - effective_time is only read for CREATE; defaults to now
    """

    invoice_id: int
    product_id: int
    action: MutationAction
    delta: Optional[Decimal] = None
    unit_cost: Optional[Decimal] = None
    effective_time: Optional[datetime] = None
