"""
Unit tests for settings, business-calendar helpers and error types.
"""

from datetime import date, datetime

import pytest
import pytz

from inventory_ledger.config.settings import Settings, get_settings, reset_settings, set_settings
from inventory_ledger.core.exceptions import (
    AppError,
    ConcurrencyError,
    ConsistencyError,
    NotFoundError,
    ValidationError,
)
from inventory_ledger.core.timezone import (
    business_date,
    business_tz,
    from_storage,
    iter_days,
    parse_datetime_business,
    start_of_day,
    start_of_next_day,
    to_business,
    to_storage,
)
from inventory_ledger.domain.models import OversellPolicy

from tests.conftest import business_datetime


# =============================================================================
# SETTINGS
# =============================================================================


class TestSettings:
    """Tests for Settings and the global settings accessors."""

    def test_defaults(self):
        settings = Settings()

        assert settings.business_timezone == "US/Eastern"
        assert settings.oversell_policy == OversellPolicy.REJECT
        assert settings.lock_timeout_seconds == 5.0

    def test_environment_overrides(self, monkeypatch):
        monkeypatch.setenv("INVENTORY_LEDGER_OVERSELL_POLICY", "ALLOW")
        monkeypatch.setenv("INVENTORY_LEDGER_LOCK_TIMEOUT_SECONDS", "0.5")
        reset_settings()

        settings = get_settings()

        assert settings.oversell_policy == OversellPolicy.ALLOW
        assert settings.lock_timeout_seconds == 0.5

    def test_database_url_derived_from_data_dir(self, tmp_path):
        settings = Settings(data_dir=tmp_path / "ledger")

        assert settings.get_database_url() == f"sqlite:///{tmp_path / 'ledger' / 'inventory.db'}"
        assert (tmp_path / "ledger").is_dir()

    def test_explicit_database_url_wins(self, tmp_path):
        settings = Settings(data_dir=tmp_path, database_url="postgresql://ledger@db/ledger")

        assert settings.get_database_url() == "postgresql://ledger@db/ledger"

    def test_set_settings_changes_business_timezone(self):
        set_settings(Settings(business_timezone="UTC"))

        assert business_tz().zone == "UTC"


# =============================================================================
# BUSINESS CALENDAR
# =============================================================================


class TestBusinessCalendar:
    """Tests for timezone helpers."""

    def test_naive_is_assumed_business_local(self):
        converted = to_business(datetime(2024, 6, 1, 9, 30))

        assert converted == business_datetime(2024, 6, 1, 9, 30)

    def test_aware_is_converted(self):
        utc_time = pytz.utc.localize(datetime(2024, 6, 2, 2, 0))

        assert business_date(utc_time) == date(2024, 6, 1)
        assert to_business(utc_time).hour == 22

    def test_storage_round_trip(self):
        aware = business_datetime(2024, 6, 1, 17, 45)

        stored = to_storage(aware)

        assert stored.tzinfo is None
        assert stored == datetime(2024, 6, 1, 21, 45)
        assert from_storage(stored) == aware
        assert from_storage(None) is None

    def test_repeated_dst_hour_stores_distinct_instants(self):
        """
        GIVEN 01:30 on 2024-11-03 in daylight time and in standard time
        WHEN both are converted for storage
        THEN the stored values differ by an hour and keep their order
        """
        tz = business_tz()
        daylight = tz.localize(datetime(2024, 11, 3, 1, 30), is_dst=True)
        standard = tz.localize(datetime(2024, 11, 3, 1, 30), is_dst=False)

        assert to_storage(daylight) == datetime(2024, 11, 3, 5, 30)
        assert to_storage(standard) == datetime(2024, 11, 3, 6, 30)
        assert from_storage(to_storage(standard)) == standard
        assert business_date(from_storage(to_storage(standard))) == date(2024, 11, 3)

    def test_day_bounds(self):
        assert start_of_day(date(2024, 6, 1)) == business_datetime(2024, 6, 1, 0, 0)
        assert start_of_next_day(date(2024, 6, 30)) == business_datetime(2024, 7, 1, 0, 0)

    def test_iter_days_is_inclusive(self):
        days = list(iter_days(date(2024, 2, 28), date(2024, 3, 1)))

        assert days == [date(2024, 2, 28), date(2024, 2, 29), date(2024, 3, 1)]
        assert list(iter_days(date(2024, 3, 2), date(2024, 3, 1))) == []

    def test_parse_datetime_business(self):
        assert parse_datetime_business("2024-06-01 10:00") == business_datetime(2024, 6, 1, 10)
        assert parse_datetime_business("2024-06-01T14:00:00Z") == business_datetime(2024, 6, 1, 10)


# =============================================================================
# ERRORS
# =============================================================================


class TestErrors:
    """Tests for the application error hierarchy."""

    def test_codes(self):
        assert ValidationError("bad").code == "VALIDATION_ERROR"
        assert ConsistencyError("broken", product_id=3).product_id == 3
        assert NotFoundError("Invoice", "7").message == "Invoice not found: 7"

    def test_only_concurrency_is_retryable(self):
        assert ConcurrencyError(1, 0.5).retryable
        for error in (ValidationError("x"), ConsistencyError("x"), NotFoundError("Movement", "1")):
            assert isinstance(error, AppError)
            assert not error.retryable

    def test_concurrency_message_names_product(self):
        assert "product 4" in ConcurrencyError(4, 2.0).message
        assert "the ledger" in ConcurrencyError(None, 2.0).message
