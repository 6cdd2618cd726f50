"""
Pytest configuration and fixtures for inventory ledger tests.

This module provides:
- In-memory SQLite database fixtures
- A fixed business-time clock
- Repository, coordinator and service fixtures
- Helpers for business-timezone datetimes and decimal assertions
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Optional

import pytest
from sqlalchemy import create_engine, StaticPool
from sqlalchemy.orm import sessionmaker, Session

from inventory_ledger.config.settings import reset_settings
from inventory_ledger.core.timezone import business_tz
from inventory_ledger.domain.models import Movement, OversellPolicy
from inventory_ledger.repositories.sqlalchemy.database import Base
# Import ORM models to register them with Base before creating tables
from inventory_ledger.repositories.sqlalchemy import orm_models  # noqa: F401
from inventory_ledger.repositories.sqlalchemy import (
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


# =============================================================================
# TIMEZONE HELPERS
# =============================================================================


def business_datetime(
    year: int,
    month: int,
    day: int,
    hour: int = 10,
    minute: int = 0,
    second: int = 0,
) -> datetime:
    """Create a localized datetime in the business timezone (US/Eastern)."""
    return business_tz().localize(datetime(year, month, day, hour, minute, second))


# Scenario calendar used across engine tests
DAY1 = date(2024, 6, 1)
DAY2 = date(2024, 6, 2)
DAY3 = date(2024, 6, 3)
TODAY = date(2024, 6, 15)


@pytest.fixture(autouse=True)
def clean_settings():
    """Every test starts from default settings."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fixed_now() -> datetime:
    """Fixed 'now' timestamp for deterministic tests."""
    return business_datetime(2024, 6, 15, 14, 30, 0)


@pytest.fixture
def clock(fixed_now) -> Callable[[], datetime]:
    """Clock returning fixed_now."""
    return lambda: fixed_now


# =============================================================================
# DATABASE FIXTURES
# =============================================================================


@pytest.fixture(scope="function")
def test_engine():
    """Create test database engine with shared in-memory SQLite."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def test_session(test_engine) -> Session:
    """Create test database session."""
    TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


# =============================================================================
# REPOSITORY FIXTURES
# =============================================================================


@pytest.fixture
def movement_repo(test_session) -> SqlAlchemyMovementRepository:
    """Provide test MovementRepository."""
    return SqlAlchemyMovementRepository(test_session)


@pytest.fixture
def snapshot_repo(test_session) -> SqlAlchemySnapshotRepository:
    """Provide test SnapshotRepository."""
    return SqlAlchemySnapshotRepository(test_session)


@pytest.fixture
def invoice_repo(test_session) -> SqlAlchemyInvoiceRepository:
    """Provide test InvoiceRepository."""
    return SqlAlchemyInvoiceRepository(test_session)


@pytest.fixture
def lock_repo(test_session) -> SqlAlchemyProductLockRepository:
    """Provide test ProductLockRepository."""
    return SqlAlchemyProductLockRepository(test_session)


# =============================================================================
# SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def coordinator(test_session, lock_repo) -> TransactionCoordinator:
    """Provide test TransactionCoordinator."""
    return TransactionCoordinator(
        db=test_session,
        lock_repo=lock_repo,
        lock_timeout_seconds=1.0,
    )


@pytest.fixture
def engine(movement_repo, snapshot_repo, coordinator, clock) -> RecomputeEngine:
    """Provide test RecomputeEngine (oversell rejected)."""
    return RecomputeEngine(
        movement_repo=movement_repo,
        snapshot_repo=snapshot_repo,
        coordinator=coordinator,
        oversell_policy=OversellPolicy.REJECT,
        clock=clock,
    )


@pytest.fixture
def permissive_engine(movement_repo, snapshot_repo, coordinator, clock) -> RecomputeEngine:
    """Provide a RecomputeEngine that allows negative stock."""
    return RecomputeEngine(
        movement_repo=movement_repo,
        snapshot_repo=snapshot_repo,
        coordinator=coordinator,
        oversell_policy=OversellPolicy.ALLOW,
        clock=clock,
    )


@pytest.fixture
def position_service(movement_repo, snapshot_repo, clock) -> PositionService:
    """Provide test PositionService."""
    return PositionService(
        movement_repo=movement_repo,
        snapshot_repo=snapshot_repo,
        clock=clock,
    )


@pytest.fixture
def invoice_service(invoice_repo, engine, coordinator, clock) -> InvoiceService:
    """Provide test InvoiceService."""
    return InvoiceService(
        invoice_repo=invoice_repo,
        engine=engine,
        coordinator=coordinator,
        clock=clock,
    )


# =============================================================================
# SCENARIO FIXTURES
# =============================================================================


@pytest.fixture
def three_day_chain(engine) -> RecomputeEngine:
    """
    Product 1, empty start:
    day 1 buy 100 @ 2.00 (invoice 1), day 2 sell 30 (invoice 2),
    day 3 buy 50 @ 3.00 (invoice 3).
    """
    engine.create_movement(1, 1, Decimal("100"), Decimal("2.00"), business_datetime(2024, 6, 1))
    engine.create_movement(2, 1, Decimal("-30"), Decimal("2.50"), business_datetime(2024, 6, 2))
    engine.create_movement(3, 1, Decimal("50"), Decimal("3.00"), business_datetime(2024, 6, 3))
    return engine


# =============================================================================
# HELPER FUNCTIONS (exported for use in tests)
# =============================================================================


def assert_decimal_equal(
    actual: Decimal,
    expected: Decimal,
    tolerance: Decimal = Decimal("0.0001"),
) -> None:
    """Assert two Decimals are equal within tolerance."""
    diff = abs(actual - expected)
    assert diff <= tolerance, f"Expected {expected}, got {actual} (diff={diff})"


def assert_state(snapshot, qty: str, avg_cost: str) -> None:
    """Assert a snapshot or PositionView carries the given quantity and average cost."""
    assert snapshot is not None, "expected a snapshot"
    assert snapshot.available_qty == Decimal(qty), (
        f"qty: expected {qty}, got {snapshot.available_qty}"
    )
    assert snapshot.avg_cost == Decimal(avg_cost), (
        f"avg_cost: expected {avg_cost}, got {snapshot.avg_cost}"
    )


def chain_states(movements: list[Movement]) -> list[tuple[Decimal, Decimal, Decimal]]:
    """(quantity_before, quantity_after, avg_cost_after) of each movement."""
    return [(m.quantity_before, m.quantity_after, m.avg_cost_after) for m in movements]


def make_movement(
    invoice_id: int,
    when: datetime,
    delta: str,
    unit_cost: str = "1.00",
    product_id: int = 1,
    before: str = "0",
    after: Optional[str] = None,
    avg_cost: Optional[str] = None,
) -> Movement:
    """Build a Movement for direct repository tests."""
    return Movement(
        product_id=product_id,
        invoice_id=invoice_id,
        effective_time=when,
        quantity_delta=Decimal(delta),
        unit_cost=Decimal(unit_cost),
        quantity_before=Decimal(before),
        quantity_after=Decimal(after if after is not None else delta),
        avg_cost_after=Decimal(avg_cost if avg_cost is not None else unit_cost),
    )
