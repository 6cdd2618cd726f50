"""Pydantic schemas for invoice writes."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator

from inventory_ledger.domain.models import InvoiceLine, InvoiceType


class InvoiceLineRequest(BaseModel):
    """One product line of an invoice."""

    product_id: int = Field(..., gt=0, description="Product ID")
    quantity: Decimal = Field(..., gt=0, decimal_places=4, description="Units bought or sold")
    unit_price: Decimal = Field(..., ge=0, decimal_places=4, description="Price per unit")

    def to_line(self) -> InvoiceLine:
        return InvoiceLine(
            product_id=self.product_id,
            quantity=self.quantity,
            unit_price=self.unit_price,
        )


def _unique_products(lines: list[InvoiceLineRequest]) -> list[InvoiceLineRequest]:
    seen: set[int] = set()
    for line in lines:
        if line.product_id in seen:
            raise ValueError(f"product {line.product_id} appears on more than one line")
        seen.add(line.product_id)
    return lines


class InvoiceCreateRequest(BaseModel):
    """Request schema for creating an invoice."""

    invoice_type: InvoiceType = Field(..., description="BUY or SELL")
    invoice_date: Optional[datetime] = Field(
        default=None,
        description="Effective time (business timezone); defaults to now",
    )
    lines: list[InvoiceLineRequest] = Field(..., min_length=1)

    @field_validator("invoice_type", mode="before")
    @classmethod
    def uppercase_type(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("lines")
    @classmethod
    def one_line_per_product(cls, v: list[InvoiceLineRequest]) -> list[InvoiceLineRequest]:
        return _unique_products(v)


class InvoiceUpdateRequest(BaseModel):
    """Request schema for replacing an invoice's lines (and optionally its type)."""

    invoice_type: Optional[InvoiceType] = None
    lines: list[InvoiceLineRequest] = Field(..., min_length=1)

    @field_validator("invoice_type", mode="before")
    @classmethod
    def uppercase_type(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("lines")
    @classmethod
    def one_line_per_product(cls, v: list[InvoiceLineRequest]) -> list[InvoiceLineRequest]:
        return _unique_products(v)
