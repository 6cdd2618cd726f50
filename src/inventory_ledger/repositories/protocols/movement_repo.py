"""Movement ledger repository protocol."""

from datetime import datetime
from decimal import Decimal
from typing import Protocol, Optional

from inventory_ledger.domain.models import Movement


class MovementRepository(Protocol):
    """Interface for the per-product movement chain.

    All ordered results use the chain key (effective_time, invoice_id).
    """

    def append(self, movement: Movement) -> Movement:
        """Persist a new movement."""
        ...

    def get_by_id(self, movement_id: int) -> Optional[Movement]:
        """Retrieve movement by ID."""
        ...

    def get_by_key(self, invoice_id: int, product_id: int) -> Optional[Movement]:
        """Retrieve the movement an invoice caused for a product."""
        ...

    def get_predecessor(
        self,
        product_id: int,
        effective_time: datetime,
        invoice_id: Optional[int] = None,
    ) -> Optional[Movement]:
        """Latest movement strictly before a time (or before a full key when invoice_id is given)."""
        ...

    def get_chain_from(self, product_id: int, effective_time: datetime) -> list[Movement]:
        """Movements at or after a time, in chain order."""
        ...

    def get_chain_after(
        self,
        product_id: int,
        effective_time: datetime,
        invoice_id: int,
    ) -> list[Movement]:
        """Movements whose key is strictly greater than (effective_time, invoice_id)."""
        ...

    def latest(self, product_id: int) -> Optional[Movement]:
        """Tail of a product's chain."""
        ...

    def overwrite(
        self,
        movement_id: int,
        *,
        quantity_delta: Decimal,
        unit_cost: Decimal,
        quantity_before: Decimal,
        quantity_after: Decimal,
        avg_cost_after: Decimal,
    ) -> Movement:
        """Mutate a movement in place."""
        ...

    def remove(self, movement_id: int) -> None:
        """Delete a movement."""
        ...

    def list_by_product(
        self,
        product_id: int,
        start: Optional[datetime] = None,
        end_before: Optional[datetime] = None,
    ) -> list[Movement]:
        """Movements of a product in [start, end_before), in chain order."""
        ...

    def list_recent(self, limit: int) -> list[Movement]:
        """Latest movements across all products, newest first."""
        ...

    def list_product_ids(self) -> list[int]:
        """Products that have at least one movement."""
        ...
