"""SQLAlchemy implementation of ProductLockRepository.

The lock is a row in product_locks, taken with SELECT ... FOR UPDATE and
touched by an UPDATE so that SQLite (which ignores FOR UPDATE) still takes
its database write lock. Either way the lock is released when the enclosing
transaction commits or rolls back.
"""

import logging
from datetime import datetime

from sqlalchemy import select, text, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from inventory_ledger.core.exceptions import ConcurrencyError
from inventory_ledger.repositories.sqlalchemy.orm_models import ProductLockORM

logger = logging.getLogger(__name__)

_LOCK_TIMEOUT_PGCODE = "55P03"


def is_lock_timeout(exc: OperationalError) -> bool:
    """True if a driver error means a lock wait ran out."""
    orig = getattr(exc, "orig", None)
    if getattr(orig, "pgcode", None) == _LOCK_TIMEOUT_PGCODE:
        return True
    message = str(orig if orig is not None else exc).lower()
    return "database is locked" in message or "lock timeout" in message


class SqlAlchemyProductLockRepository:
    """Per-product row locks held until the surrounding transaction ends."""

    def __init__(self, db: Session):
        self._db = db

    def acquire(self, product_id: int, timeout_seconds: float) -> None:
        """Block until the product is locked; raise ConcurrencyError on timeout."""
        dialect = self._db.get_bind().dialect.name
        try:
            if dialect == "postgresql":
                # Bounded wait for this transaction only
                self._db.execute(
                    text(f"SET LOCAL lock_timeout = '{int(timeout_seconds * 1000)}ms'")
                )
            self._ensure_row(product_id, dialect)
            self._db.execute(
                select(ProductLockORM.product_id)
                .where(ProductLockORM.product_id == product_id)
                .with_for_update()
            )
            self._db.execute(
                update(ProductLockORM)
                .where(ProductLockORM.product_id == product_id)
                .values(locked_at=datetime.utcnow())
            )
        except OperationalError as exc:
            if not is_lock_timeout(exc):
                raise
            logger.warning(
                "Lock wait for product %s exceeded %ss", product_id, timeout_seconds
            )
            raise ConcurrencyError(product_id, timeout_seconds) from exc
        logger.debug("Locked product %s", product_id)

    def _ensure_row(self, product_id: int, dialect: str) -> None:
        """Create the marker row on first use without disturbing the transaction."""
        if dialect == "sqlite":
            stmt = sqlite.insert(ProductLockORM).values(product_id=product_id)
            self._db.execute(stmt.on_conflict_do_nothing(index_elements=["product_id"]))
            return
        if dialect == "postgresql":
            stmt = postgresql.insert(ProductLockORM).values(product_id=product_id)
            self._db.execute(stmt.on_conflict_do_nothing(index_elements=["product_id"]))
            return

        existing = self._db.execute(
            select(ProductLockORM.product_id).where(ProductLockORM.product_id == product_id)
        ).scalar_one_or_none()
        if existing is not None:
            return
        # Another session may create it first; keep our other work intact
        savepoint = self._db.begin_nested()
        try:
            self._db.add(ProductLockORM(product_id=product_id))
            self._db.flush()
            savepoint.commit()
        except IntegrityError:
            savepoint.rollback()
