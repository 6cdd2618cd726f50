"""SQLAlchemy implementation of SnapshotRepository."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, func
from sqlalchemy.orm import Session

from inventory_ledger.domain.models import PositionSnapshot
from inventory_ledger.repositories.sqlalchemy.orm_models import PositionSnapshotORM


class SqlAlchemySnapshotRepository:
    """SQLAlchemy-backed snapshot store for derived data."""

    def __init__(self, db: Session):
        self._db = db

    def get(self, product_id: int, snapshot_date: date) -> Optional[PositionSnapshot]:
        """Snapshot for an exact date, or None."""
        orm_snap = self._get_orm(product_id, snapshot_date)
        return self._to_domain(orm_snap) if orm_snap else None

    def upsert(
        self,
        product_id: int,
        snapshot_date: date,
        available_qty: Decimal,
        avg_cost: Decimal,
    ) -> PositionSnapshot:
        """Insert or update the snapshot for a date."""
        orm_snap = self._get_orm(product_id, snapshot_date)

        if orm_snap:
            orm_snap.available_qty = available_qty
            orm_snap.avg_cost = avg_cost
            orm_snap.updated_at = datetime.utcnow()
        else:
            orm_snap = PositionSnapshotORM(
                product_id=product_id,
                snapshot_date=snapshot_date,
                available_qty=available_qty,
                avg_cost=avg_cost,
                updated_at=datetime.utcnow(),
            )
            self._db.add(orm_snap)

        self._db.flush()
        return self._to_domain(orm_snap)

    def latest_as_of(self, product_id: int, snapshot_date: date) -> Optional[PositionSnapshot]:
        """Nearest existing snapshot on or before a date."""
        orm_snap = (
            self._db.query(PositionSnapshotORM)
            .filter(
                PositionSnapshotORM.product_id == product_id,
                PositionSnapshotORM.snapshot_date <= snapshot_date,
            )
            .order_by(PositionSnapshotORM.snapshot_date.desc())
            .first()
        )
        return self._to_domain(orm_snap) if orm_snap else None

    def latest(self, product_id: int) -> Optional[PositionSnapshot]:
        """Most recent snapshot of a product."""
        orm_snap = (
            self._db.query(PositionSnapshotORM)
            .filter(PositionSnapshotORM.product_id == product_id)
            .order_by(PositionSnapshotORM.snapshot_date.desc())
            .first()
        )
        return self._to_domain(orm_snap) if orm_snap else None

    def list_range(
        self,
        product_id: Optional[int] = None,
        start: Optional[date] = None,
        end: Optional[date] = None,
    ) -> list[PositionSnapshot]:
        """Snapshots in [start, end], by product then date."""
        query = self._db.query(PositionSnapshotORM)
        if product_id is not None:
            query = query.filter(PositionSnapshotORM.product_id == product_id)
        if start is not None:
            query = query.filter(PositionSnapshotORM.snapshot_date >= start)
        if end is not None:
            query = query.filter(PositionSnapshotORM.snapshot_date <= end)
        query = query.order_by(PositionSnapshotORM.product_id, PositionSnapshotORM.snapshot_date)
        return [self._to_domain(s) for s in query.all()]

    def list_as_of(self, snapshot_date: date) -> list[PositionSnapshot]:
        """For every product, its nearest snapshot on or before a date."""
        nearest = (
            self._db.query(
                PositionSnapshotORM.product_id.label("product_id"),
                func.max(PositionSnapshotORM.snapshot_date).label("snapshot_date"),
            )
            .filter(PositionSnapshotORM.snapshot_date <= snapshot_date)
            .group_by(PositionSnapshotORM.product_id)
            .subquery()
        )
        orm_snaps = (
            self._db.query(PositionSnapshotORM)
            .join(
                nearest,
                and_(
                    PositionSnapshotORM.product_id == nearest.c.product_id,
                    PositionSnapshotORM.snapshot_date == nearest.c.snapshot_date,
                ),
            )
            .order_by(PositionSnapshotORM.product_id)
            .all()
        )
        return [self._to_domain(s) for s in orm_snaps]

    def list_product_ids(self) -> list[int]:
        """Products that have at least one snapshot."""
        rows = (
            self._db.query(PositionSnapshotORM.product_id)
            .distinct()
            .order_by(PositionSnapshotORM.product_id)
            .all()
        )
        return [row[0] for row in rows]

    def _get_orm(self, product_id: int, snapshot_date: date) -> Optional[PositionSnapshotORM]:
        return (
            self._db.query(PositionSnapshotORM)
            .filter(
                PositionSnapshotORM.product_id == product_id,
                PositionSnapshotORM.snapshot_date == snapshot_date,
            )
            .first()
        )

    @staticmethod
    def _to_domain(orm: PositionSnapshotORM) -> PositionSnapshot:
        """Convert ORM snapshot to domain model."""
        return PositionSnapshot(
            product_id=orm.product_id,
            snapshot_date=orm.snapshot_date,
            available_qty=Decimal(str(orm.available_qty)) if orm.available_qty else Decimal("0"),
            avg_cost=Decimal(str(orm.avg_cost)) if orm.avg_cost else Decimal("0"),
            updated_at=orm.updated_at,
        )
