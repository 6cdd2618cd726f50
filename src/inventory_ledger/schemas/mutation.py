"""Pydantic schema for ledger mutation notifications."""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from inventory_ledger.domain.models import MutationAction, MutationEvent
from inventory_ledger.schemas.base import parse_request


class MutationEventRequest(BaseModel):
    """Validated form of a MutationEvent."""

    invoice_id: int = Field(..., gt=0, description="Owning invoice")
    product_id: int = Field(..., gt=0, description="Affected product")
    action: MutationAction = Field(..., description="CREATE, EDIT or DELETE")
    delta: Optional[Decimal] = Field(
        default=None,
        decimal_places=4,
        description="Signed quantity change (required for CREATE/EDIT)",
    )
    unit_cost: Optional[Decimal] = Field(
        default=None,
        ge=0,
        decimal_places=4,
        description="Line unit price (required for CREATE/EDIT)",
    )
    effective_time: Optional[datetime] = Field(
        default=None,
        description="When the invoice takes effect; CREATE only, defaults to now",
    )

    @field_validator("action", mode="before")
    @classmethod
    def uppercase_action(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @model_validator(mode="after")
    def check_payload(self) -> "MutationEventRequest":
        if self.action in (MutationAction.CREATE, MutationAction.EDIT):
            if self.delta is None or self.delta == 0:
                raise ValueError(f"{self.action.value} requires a non-zero delta")
            if self.unit_cost is None:
                raise ValueError(f"{self.action.value} requires unit_cost")
        return self

    def to_event(self) -> MutationEvent:
        return MutationEvent(
            invoice_id=self.invoice_id,
            product_id=self.product_id,
            action=self.action,
            delta=self.delta,
            unit_cost=self.unit_cost,
            effective_time=self.effective_time,
        )


def to_mutation_event(data: Any) -> MutationEvent:
    """Validate a mapping or MutationEvent; raises ValidationError."""
    return parse_request(MutationEventRequest, data).to_event()
