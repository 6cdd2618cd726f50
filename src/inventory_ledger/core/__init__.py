"""Core utilities and shared functionality."""

from inventory_ledger.core.timezone import (
    business_tz,
    now_business,
    today_business,
    to_business,
    business_date,
    parse_datetime_business,
)
from inventory_ledger.core.exceptions import (
    AppError,
    ValidationError,
    NotFoundError,
    ConsistencyError,
    ConcurrencyError,
)

__all__ = [
    "business_tz",
    "now_business",
    "today_business",
    "to_business",
    "business_date",
    "parse_datetime_business",
    "AppError",
    "ValidationError",
    "NotFoundError",
    "ConsistencyError",
    "ConcurrencyError",
]
