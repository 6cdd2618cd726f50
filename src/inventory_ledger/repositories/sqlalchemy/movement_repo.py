"""SQLAlchemy implementation of MovementRepository."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy import and_, or_
from sqlalchemy.orm import Session

from inventory_ledger.core.exceptions import NotFoundError
from inventory_ledger.core.timezone import from_storage, to_storage
from inventory_ledger.domain.models import Movement
from inventory_ledger.repositories.sqlalchemy.orm_models import MovementORM


class SqlAlchemyMovementRepository:
    """
    SQLAlchemy-backed movement ledger.

    Writes are flushed, never committed: the caller's transaction decides.
    """

    def __init__(self, db: Session):
        self._db = db

    def append(self, movement: Movement) -> Movement:
        """Persist a new movement."""
        orm_mov = MovementORM(
            product_id=movement.product_id,
            invoice_id=movement.invoice_id,
            effective_time=to_storage(movement.effective_time),
            quantity_before=movement.quantity_before,
            quantity_delta=movement.quantity_delta,
            quantity_after=movement.quantity_after,
            unit_cost=movement.unit_cost,
            avg_cost_after=movement.avg_cost_after,
            recorded_at=datetime.utcnow(),
        )
        self._db.add(orm_mov)
        self._db.flush()
        return self._to_domain(orm_mov)

    def get_by_id(self, movement_id: int) -> Optional[Movement]:
        """Retrieve movement by ID."""
        orm_mov = self._db.query(MovementORM).filter(
            MovementORM.movement_id == movement_id
        ).first()
        return self._to_domain(orm_mov) if orm_mov else None

    def get_by_key(self, invoice_id: int, product_id: int) -> Optional[Movement]:
        """Retrieve the movement an invoice caused for a product."""
        orm_mov = self._db.query(MovementORM).filter(
            MovementORM.invoice_id == invoice_id,
            MovementORM.product_id == product_id,
        ).first()
        return self._to_domain(orm_mov) if orm_mov else None

    def get_predecessor(
        self,
        product_id: int,
        effective_time: datetime,
        invoice_id: Optional[int] = None,
    ) -> Optional[Movement]:
        """Latest movement strictly before a time, or before a full key."""
        orm_mov = (
            self._db.query(MovementORM)
            .filter(
                MovementORM.product_id == product_id,
                self._before_key(effective_time, invoice_id),
            )
            .order_by(MovementORM.effective_time.desc(), MovementORM.invoice_id.desc())
            .first()
        )
        return self._to_domain(orm_mov) if orm_mov else None

    def get_chain_from(self, product_id: int, effective_time: datetime) -> list[Movement]:
        """Movements at or after a time, in chain order."""
        query = self._chain_query(product_id).filter(
            MovementORM.effective_time >= to_storage(effective_time)
        )
        return [self._to_domain(m) for m in query.all()]

    def get_chain_after(
        self,
        product_id: int,
        effective_time: datetime,
        invoice_id: int,
    ) -> list[Movement]:
        """Movements whose key is strictly greater than (effective_time, invoice_id)."""
        stored = to_storage(effective_time)
        query = self._chain_query(product_id).filter(
            or_(
                MovementORM.effective_time > stored,
                and_(
                    MovementORM.effective_time == stored,
                    MovementORM.invoice_id > invoice_id,
                ),
            )
        )
        return [self._to_domain(m) for m in query.all()]

    def latest(self, product_id: int) -> Optional[Movement]:
        """Tail of a product's chain."""
        orm_mov = (
            self._db.query(MovementORM)
            .filter(MovementORM.product_id == product_id)
            .order_by(MovementORM.effective_time.desc(), MovementORM.invoice_id.desc())
            .first()
        )
        return self._to_domain(orm_mov) if orm_mov else None

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
        orm_mov = self._get_orm(movement_id)
        orm_mov.quantity_delta = quantity_delta
        orm_mov.unit_cost = unit_cost
        orm_mov.quantity_before = quantity_before
        orm_mov.quantity_after = quantity_after
        orm_mov.avg_cost_after = avg_cost_after
        self._db.flush()
        return self._to_domain(orm_mov)

    def remove(self, movement_id: int) -> None:
        """Delete a movement."""
        orm_mov = self._get_orm(movement_id)
        self._db.delete(orm_mov)
        self._db.flush()

    def list_by_product(
        self,
        product_id: int,
        start: Optional[datetime] = None,
        end_before: Optional[datetime] = None,
    ) -> list[Movement]:
        """Movements of a product in [start, end_before), in chain order."""
        query = self._chain_query(product_id)
        if start is not None:
            query = query.filter(MovementORM.effective_time >= to_storage(start))
        if end_before is not None:
            query = query.filter(MovementORM.effective_time < to_storage(end_before))
        return [self._to_domain(m) for m in query.all()]

    def list_recent(self, limit: int) -> list[Movement]:
        """Latest movements across all products, newest first."""
        orm_movs = (
            self._db.query(MovementORM)
            .order_by(
                MovementORM.effective_time.desc(),
                MovementORM.invoice_id.desc(),
                MovementORM.product_id,
            )
            .limit(limit)
            .all()
        )
        return [self._to_domain(m) for m in orm_movs]

    def list_product_ids(self) -> list[int]:
        """Products that have at least one movement."""
        rows = (
            self._db.query(MovementORM.product_id)
            .distinct()
            .order_by(MovementORM.product_id)
            .all()
        )
        return [row[0] for row in rows]

    def _get_orm(self, movement_id: int) -> MovementORM:
        orm_mov = self._db.query(MovementORM).filter(
            MovementORM.movement_id == movement_id
        ).first()
        if not orm_mov:
            raise NotFoundError("Movement", str(movement_id))
        return orm_mov

    def _chain_query(self, product_id: int):
        return (
            self._db.query(MovementORM)
            .filter(MovementORM.product_id == product_id)
            .order_by(MovementORM.effective_time, MovementORM.invoice_id)
        )

    @staticmethod
    def _before_key(effective_time: datetime, invoice_id: Optional[int]):
        stored = to_storage(effective_time)
        if invoice_id is None:
            return MovementORM.effective_time < stored
        return or_(
            MovementORM.effective_time < stored,
            and_(
                MovementORM.effective_time == stored,
                MovementORM.invoice_id < invoice_id,
            ),
        )

    @staticmethod
    def _to_domain(orm: MovementORM) -> Movement:
        """Convert ORM movement to domain model."""
        return Movement(
            movement_id=orm.movement_id,
            product_id=orm.product_id,
            invoice_id=orm.invoice_id,
            effective_time=from_storage(orm.effective_time),
            quantity_before=Decimal(str(orm.quantity_before)) if orm.quantity_before else Decimal("0"),
            quantity_delta=Decimal(str(orm.quantity_delta)) if orm.quantity_delta else Decimal("0"),
            quantity_after=Decimal(str(orm.quantity_after)) if orm.quantity_after else Decimal("0"),
            unit_cost=Decimal(str(orm.unit_cost)) if orm.unit_cost else Decimal("0"),
            avg_cost_after=Decimal(str(orm.avg_cost_after)) if orm.avg_cost_after else Decimal("0"),
            recorded_at=orm.recorded_at,
        )
