"""SQLAlchemy ORM model definitions."""

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Column,
    Integer,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    UniqueConstraint,
    Enum as SqlEnum,
)
from sqlalchemy.orm import relationship

from inventory_ledger.repositories.sqlalchemy.database import Base
from inventory_ledger.domain.models.enums import InvoiceType

# Quantities and costs share one fixed-point shape
QTY = Numeric(precision=18, scale=4)
COST = Numeric(precision=18, scale=4)


class MovementORM(Base):
    """SQLAlchemy model for Movement (ledger entry)."""

    __tablename__ = "stock_movements"

    movement_id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False)
    invoice_id = Column(Integer, nullable=False)
    effective_time = Column(DateTime, nullable=False)  # naive UTC
    quantity_before = Column(QTY, nullable=False, default=Decimal("0"))
    quantity_delta = Column(QTY, nullable=False)
    quantity_after = Column(QTY, nullable=False, default=Decimal("0"))
    unit_cost = Column(COST, nullable=False, default=Decimal("0"))
    avg_cost_after = Column(COST, nullable=False, default=Decimal("0"))
    recorded_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("product_id", "invoice_id", name="uq_stock_movements_product_invoice"),
        Index("ix_stock_movements_chain", "product_id", "effective_time", "invoice_id"),
        Index("ix_stock_movements_effective_time", "effective_time"),
    )


class PositionSnapshotORM(Base):
    """SQLAlchemy model for PositionSnapshot (derived end-of-day state)."""

    __tablename__ = "position_snapshots"

    snapshot_id = Column(Integer, primary_key=True, autoincrement=True)
    product_id = Column(Integer, nullable=False)
    snapshot_date = Column(Date, nullable=False)
    available_qty = Column(QTY, nullable=False, default=Decimal("0"))
    avg_cost = Column(COST, nullable=False, default=Decimal("0"))
    updated_at = Column(DateTime, nullable=True)

    __table_args__ = (
        UniqueConstraint("product_id", "snapshot_date", name="uq_position_snapshots_product_date"),
        Index("ix_position_snapshots_date", "snapshot_date"),
    )


class ProductLockORM(Base):
    """Per-product marker row; only ever used as a lock target."""

    __tablename__ = "product_locks"

    product_id = Column(Integer, primary_key=True, autoincrement=False)
    locked_at = Column(DateTime, nullable=True)


class InvoiceORM(Base):
    """SQLAlchemy model for Invoice."""

    __tablename__ = "invoices"

    invoice_id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_type = Column(SqlEnum(InvoiceType), nullable=False)
    invoice_date = Column(DateTime, nullable=False)  # naive UTC
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=True)

    lines = relationship(
        "InvoiceLineORM",
        back_populates="invoice",
        cascade="all, delete-orphan",
        order_by="InvoiceLineORM.product_id",
    )


class InvoiceLineORM(Base):
    """SQLAlchemy model for InvoiceLine."""

    __tablename__ = "invoice_lines"

    line_id = Column(Integer, primary_key=True, autoincrement=True)
    invoice_id = Column(Integer, ForeignKey("invoices.invoice_id"), nullable=False)
    product_id = Column(Integer, nullable=False)
    quantity = Column(QTY, nullable=False)
    unit_price = Column(COST, nullable=False)

    invoice = relationship("InvoiceORM", back_populates="lines")

    __table_args__ = (
        UniqueConstraint("invoice_id", "product_id", name="uq_invoice_lines_invoice_product"),
    )
