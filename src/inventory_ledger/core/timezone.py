"""Timezone utilities for the business calendar.

Effective times are handled as timezone-aware datetimes in the configured
business timezone. The database stores them as naive UTC, so stored values
sort by instant even across the repeated hour at the end of daylight time.
"""

from datetime import date, datetime, time, timedelta
from typing import Optional

import pytz
from dateutil import parser as date_parser

from inventory_ledger.config.settings import get_settings


def business_tz() -> pytz.BaseTzInfo:
    """Return the configured business timezone."""
    return pytz.timezone(get_settings().business_timezone)


def now_business() -> datetime:
    """Return current time in the business timezone."""
    return datetime.now(business_tz())


def today_business() -> date:
    """Return today's calendar date in the business timezone."""
    return now_business().date()


def to_business(dt: datetime) -> datetime:
    """Convert a datetime to the business timezone."""
    tz = business_tz()
    if dt.tzinfo is None:
        # Assume naive datetime is already business-local
        return tz.localize(dt)
    return dt.astimezone(tz)


def to_storage(dt: datetime) -> datetime:
    """Naive UTC datetime for persistence."""
    return to_business(dt).astimezone(pytz.utc).replace(tzinfo=None)


def from_storage(dt: Optional[datetime]) -> Optional[datetime]:
    """Business-local datetime from a stored naive UTC value."""
    if dt is None:
        return None
    return pytz.utc.localize(dt).astimezone(business_tz())


def business_date(dt: datetime) -> date:
    """Calendar date of a datetime in the business timezone."""
    return to_business(dt).date()


def start_of_day(day: date) -> datetime:
    """First instant of a business day."""
    return business_tz().localize(datetime.combine(day, time.min))


def start_of_next_day(day: date) -> datetime:
    """First instant of the business day after ``day``."""
    return start_of_day(day + timedelta(days=1))


def iter_days(start: date, end: date):
    """Yield every calendar date from start to end, inclusive."""
    current = start
    while current <= end:
        yield current
        current += timedelta(days=1)


def parse_datetime_business(value: str) -> datetime:
    """
    Parse a datetime string and return it in the business timezone.

    If no timezone is provided in the string, assumes business-local time.
    """
    return to_business(date_parser.parse(value))
