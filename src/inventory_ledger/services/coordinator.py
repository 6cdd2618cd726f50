"""Transaction and per-product lock coordination."""

import logging
from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from inventory_ledger.core.exceptions import ConcurrencyError
from inventory_ledger.repositories.protocols import ProductLockRepository
from inventory_ledger.repositories.sqlalchemy.lock_repo import is_lock_timeout

logger = logging.getLogger(__name__)


class TransactionCoordinator:
    """
    Wraps one invoice mutation and all of its ledger effects in a single
    session transaction.

    Nested ``atomic()`` blocks join the outermost one. Only the outermost
    block commits; any exception escaping it rolls everything back, including
    invoice rows written by the caller. Product locks live as long as the
    transaction.
    """

    def __init__(
        self,
        db: Session,
        lock_repo: ProductLockRepository,
        lock_timeout_seconds: float,
    ):
        self._db = db
        self._lock_repo = lock_repo
        self._lock_timeout_seconds = lock_timeout_seconds
        self._depth = 0
        self._held: set[int] = set()

    @property
    def in_transaction(self) -> bool:
        return self._depth > 0

    @property
    def held_locks(self) -> frozenset[int]:
        return frozenset(self._held)

    @contextmanager
    def atomic(self) -> Iterator["TransactionCoordinator"]:
        """Run a block inside the (possibly shared) ledger transaction."""
        self._depth += 1
        outermost = self._depth == 1
        try:
            yield self
            if outermost:
                self._db.commit()
        except OperationalError as exc:
            if outermost:
                self._db.rollback()
            if is_lock_timeout(exc):
                raise ConcurrencyError(None, self._lock_timeout_seconds) from exc
            raise
        except Exception:
            if outermost:
                self._db.rollback()
                logger.debug("Ledger transaction rolled back")
            raise
        finally:
            self._depth -= 1
            if outermost:
                self._held.clear()

    def lock_product(self, product_id: int) -> None:
        """Take the product's lock for the rest of the current transaction."""
        if not self.in_transaction:
            raise RuntimeError("lock_product() must be called inside atomic()")
        if product_id in self._held:
            return
        self._lock_repo.acquire(product_id, self._lock_timeout_seconds)
        self._held.add(product_id)
