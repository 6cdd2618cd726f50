"""SQLAlchemy implementation of InvoiceRepository."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from sqlalchemy.orm import Session

from inventory_ledger.core.exceptions import NotFoundError
from inventory_ledger.core.timezone import from_storage, to_storage
from inventory_ledger.domain.models import Invoice, InvoiceLine, InvoiceType
from inventory_ledger.repositories.sqlalchemy.orm_models import InvoiceORM, InvoiceLineORM


class SqlAlchemyInvoiceRepository:
    """SQLAlchemy-backed invoice repository."""

    def __init__(self, db: Session):
        self._db = db

    def create(self, invoice: Invoice) -> Invoice:
        """Persist a new invoice with its lines."""
        orm_inv = InvoiceORM(
            invoice_type=invoice.invoice_type,
            invoice_date=to_storage(invoice.invoice_date),
            created_at=datetime.utcnow(),
        )
        if invoice.invoice_id is not None:
            orm_inv.invoice_id = invoice.invoice_id
        orm_inv.lines = [self._line_to_orm(line) for line in invoice.lines]
        self._db.add(orm_inv)
        self._db.flush()
        return self._to_domain(orm_inv)

    def get_by_id(self, invoice_id: int) -> Optional[Invoice]:
        """Retrieve invoice by ID."""
        orm_inv = self._db.query(InvoiceORM).filter(
            InvoiceORM.invoice_id == invoice_id
        ).first()
        return self._to_domain(orm_inv) if orm_inv else None

    def replace_lines(
        self,
        invoice_id: int,
        lines: list[InvoiceLine],
        invoice_type: Optional[InvoiceType] = None,
    ) -> Invoice:
        """Swap an invoice's lines (and optionally its type)."""
        orm_inv = self._get_orm(invoice_id)
        if invoice_type is not None:
            orm_inv.invoice_type = invoice_type

        # Update matching products in place; the (invoice, product) unique
        # constraint forbids delete-and-reinsert within one flush.
        wanted = {line.product_id: line for line in lines}
        for orm_line in list(orm_inv.lines):
            line = wanted.pop(orm_line.product_id, None)
            if line is None:
                orm_inv.lines.remove(orm_line)
            else:
                orm_line.quantity = line.quantity
                orm_line.unit_price = line.unit_price
        for line in wanted.values():
            orm_inv.lines.append(self._line_to_orm(line))

        orm_inv.updated_at = datetime.utcnow()
        self._db.flush()
        self._db.refresh(orm_inv)
        return self._to_domain(orm_inv)

    def remove_line(self, invoice_id: int, product_id: int) -> None:
        """Delete one product line."""
        orm_inv = self._get_orm(invoice_id)
        for orm_line in list(orm_inv.lines):
            if orm_line.product_id == product_id:
                orm_inv.lines.remove(orm_line)
                orm_inv.updated_at = datetime.utcnow()
                self._db.flush()
                return
        raise NotFoundError("Invoice line", f"{invoice_id}/{product_id}")

    def delete(self, invoice_id: int) -> None:
        """Delete an invoice and its lines (hard delete)."""
        orm_inv = self._get_orm(invoice_id)
        self._db.delete(orm_inv)
        self._db.flush()

    def _get_orm(self, invoice_id: int) -> InvoiceORM:
        orm_inv = self._db.query(InvoiceORM).filter(
            InvoiceORM.invoice_id == invoice_id
        ).first()
        if not orm_inv:
            raise NotFoundError("Invoice", str(invoice_id))
        return orm_inv

    @staticmethod
    def _line_to_orm(line: InvoiceLine) -> InvoiceLineORM:
        return InvoiceLineORM(
            product_id=line.product_id,
            quantity=line.quantity,
            unit_price=line.unit_price,
        )

    @staticmethod
    def _to_domain(orm: InvoiceORM) -> Invoice:
        """Convert ORM invoice to domain model."""
        lines = [
            InvoiceLine(
                line_id=orm_line.line_id,
                product_id=orm_line.product_id,
                quantity=Decimal(str(orm_line.quantity)) if orm_line.quantity else Decimal("0"),
                unit_price=Decimal(str(orm_line.unit_price)) if orm_line.unit_price else Decimal("0"),
            )
            for orm_line in sorted(orm.lines, key=lambda l: l.product_id)
        ]
        return Invoice(
            invoice_id=orm.invoice_id,
            invoice_type=orm.invoice_type,
            invoice_date=from_storage(orm.invoice_date),
            lines=lines,
            created_at=orm.created_at,
            updated_at=orm.updated_at,
        )
