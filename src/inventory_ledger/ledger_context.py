"""Ledger context for in-process service management.

Provides a centralized way for invoicing and reporting code to reach the
ledger services without a transport layer.
"""

import logging
from typing import Optional

from sqlalchemy.orm import Session

from inventory_ledger.config.settings import Settings, set_settings, get_settings
from inventory_ledger.config.logging_config import setup_logging
from inventory_ledger.repositories.sqlalchemy import (
    init_db_with_url,
    reset_database,
    get_session,
    SqlAlchemyMovementRepository,
    SqlAlchemySnapshotRepository,
    SqlAlchemyInvoiceRepository,
    SqlAlchemyProductLockRepository,
)
from inventory_ledger.services import (
    TransactionCoordinator,
    RecomputeEngine,
    PositionService,
    InvoiceService,
)

logger = logging.getLogger(__name__)


class LedgerContext:
    """
    Wires settings, database, repositories and services around one session.

    One context serves one thread of work; concurrent writers each need
    their own context (and therefore their own session and transaction).
    """

    def __init__(self, settings: Optional[Settings] = None):
        self._settings = settings
        self._session: Optional[Session] = None
        self._initialized = False

        # Service instances (lazy initialized)
        self._coordinator: Optional[TransactionCoordinator] = None
        self._engine: Optional[RecomputeEngine] = None
        self._position_service: Optional[PositionService] = None
        self._invoice_service: Optional[InvoiceService] = None

    def initialize(self, settings: Optional[Settings] = None, configure_logging: bool = True) -> None:
        """
        Initialize or reinitialize the ledger.

        Args:
            settings: Settings to install globally; environment defaults if omitted.
            configure_logging: Whether to call setup_logging().
        """
        if settings is not None:
            self._settings = settings
        if self._settings is None:
            self._settings = Settings()
        set_settings(self._settings)

        if configure_logging:
            setup_logging()

        # Reset and reinitialize database
        self.close()
        reset_database()
        init_db_with_url(self._settings.get_database_url())

        self._initialized = True
        logger.info("Ledger initialized (%s)", self._settings.app_name)

    @property
    def is_initialized(self) -> bool:
        """Check if context is initialized."""
        return self._initialized

    @property
    def session(self) -> Session:
        """Get or create the database session."""
        if self._session is None:
            self._session = get_session()
        return self._session

    def refresh_session(self) -> None:
        """Replace the session (and every service bound to it)."""
        self.close()
        self._session = get_session()

    # Service accessors
    @property
    def coordinator(self) -> TransactionCoordinator:
        if self._coordinator is None:
            self._coordinator = TransactionCoordinator(
                db=self.session,
                lock_repo=SqlAlchemyProductLockRepository(self.session),
                lock_timeout_seconds=get_settings().lock_timeout_seconds,
            )
        return self._coordinator

    @property
    def engine(self) -> RecomputeEngine:
        """Get the RecomputeEngine instance."""
        if self._engine is None:
            self._engine = RecomputeEngine(
                movement_repo=SqlAlchemyMovementRepository(self.session),
                snapshot_repo=SqlAlchemySnapshotRepository(self.session),
                coordinator=self.coordinator,
                oversell_policy=get_settings().oversell_policy,
            )
        return self._engine

    @property
    def positions(self) -> PositionService:
        """Get the PositionService instance."""
        if self._position_service is None:
            self._position_service = PositionService(
                movement_repo=SqlAlchemyMovementRepository(self.session),
                snapshot_repo=SqlAlchemySnapshotRepository(self.session),
            )
        return self._position_service

    @property
    def invoices(self) -> InvoiceService:
        """Get the InvoiceService instance."""
        if self._invoice_service is None:
            self._invoice_service = InvoiceService(
                invoice_repo=SqlAlchemyInvoiceRepository(self.session),
                engine=self.engine,
                coordinator=self.coordinator,
            )
        return self._invoice_service

    def close(self) -> None:
        """Clean up resources."""
        if self._session:
            self._session.close()
            self._session = None
        self._coordinator = None
        self._engine = None
        self._position_service = None
        self._invoice_service = None

    def __enter__(self) -> "LedgerContext":
        if not self._initialized:
            self.initialize()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# Global ledger context (one per process for single-threaded callers)
_ledger_context: Optional[LedgerContext] = None


def get_ledger_context() -> LedgerContext:
    """Get or create the global ledger context."""
    global _ledger_context
    if _ledger_context is None:
        _ledger_context = LedgerContext()
    return _ledger_context


def set_ledger_context(context: LedgerContext) -> None:
    """Set the global ledger context."""
    global _ledger_context
    _ledger_context = context
