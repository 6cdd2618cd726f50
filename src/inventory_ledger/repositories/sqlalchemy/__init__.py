"""SQLAlchemy repository implementations."""

from inventory_ledger.repositories.sqlalchemy.database import (
    build_engine,
    get_engine,
    get_session_factory,
    get_db,
    get_session,
    session_scope,
    init_db,
    init_db_with_url,
    reset_database,
    Base,
)
from inventory_ledger.repositories.sqlalchemy.movement_repo import SqlAlchemyMovementRepository
from inventory_ledger.repositories.sqlalchemy.snapshot_repo import SqlAlchemySnapshotRepository
from inventory_ledger.repositories.sqlalchemy.invoice_repo import SqlAlchemyInvoiceRepository
from inventory_ledger.repositories.sqlalchemy.lock_repo import (
    SqlAlchemyProductLockRepository,
    is_lock_timeout,
)

__all__ = [
    "build_engine",
    "get_engine",
    "get_session_factory",
    "get_db",
    "get_session",
    "session_scope",
    "init_db",
    "init_db_with_url",
    "reset_database",
    "Base",
    "SqlAlchemyMovementRepository",
    "SqlAlchemySnapshotRepository",
    "SqlAlchemyInvoiceRepository",
    "SqlAlchemyProductLockRepository",
    "is_lock_timeout",
]
