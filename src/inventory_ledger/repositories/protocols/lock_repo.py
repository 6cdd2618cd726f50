"""Product lock repository protocol."""

from typing import Protocol


class ProductLockRepository(Protocol):
    """Interface for per-product mutual exclusion held until transaction end."""

    def acquire(self, product_id: int, timeout_seconds: float) -> None:
        """Block until the product is locked; raise ConcurrencyError on timeout."""
        ...
