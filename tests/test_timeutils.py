"""Tests for date and slot time parsing."""

from datetime import date, datetime

from app.timeutils import (
    BUSINESS_TZ,
    as_business_time,
    booking_datetime,
    booking_end_datetime,
    format_time_12h,
    normalize_date_to_ymd,
    normalize_time_range,
    parse_booking_date,
    parse_start_time,
    period_keys,
    to_storage,
)


def test_parse_long_form_date():
    assert parse_booking_date("Thursday, October 2, 2025") == date(2025, 10, 2)
    assert parse_booking_date("October 2, 2025") == date(2025, 10, 2)


def test_parse_numeric_dates():
    assert parse_booking_date("2025-10-02") == date(2025, 10, 2)
    # Slash dates are day first
    assert parse_booking_date("2/10/2025") == date(2025, 10, 2)
    assert parse_booking_date("5 jan 2026") == date(2026, 1, 5)


def test_parse_rejects_garbage():
    assert parse_booking_date("sometime soon") is None
    assert parse_booking_date("2025-02-30") is None
    assert parse_booking_date("") is None
    assert normalize_date_to_ymd(None) is None


def test_start_time_defaults_to_evening():
    assert parse_start_time("4:00 PM - 7:00 PM") == (16, 0)
    assert parse_start_time("12:30 AM") == (0, 30)
    assert parse_start_time("whenever") == (18, 0)
    assert parse_start_time(None) == (18, 0)


def test_booking_datetime_is_business_time():
    starts = booking_datetime("2025-10-02", "7:30 PM - 10:30 PM")
    assert starts == datetime(2025, 10, 2, 19, 30, tzinfo=BUSINESS_TZ)


def test_slot_end_rolls_past_midnight():
    ends = booking_end_datetime("2025-10-02", "10:30 PM - 1:30 AM")
    assert ends == datetime(2025, 10, 3, 1, 30, tzinfo=BUSINESS_TZ)
    assert booking_end_datetime("2025-10-02", "7:00 PM") is None


def test_storage_round_trip_keeps_wall_time():
    starts = booking_datetime("2025-10-02", "4:00 PM")
    stored = to_storage(starts)
    assert stored.tzinfo is None
    assert stored.hour == 16
    assert as_business_time(stored) == starts


def test_period_keys_week_starts_sunday():
    # 2025-10-02 is a Thursday
    keys = period_keys(datetime(2025, 10, 2, 12, 0, tzinfo=BUSINESS_TZ))
    assert keys == {
        "today": "2025-10-02",
        "week": "2025-09-28",
        "month": "2025-10-01",
        "year": "2025-01-01",
    }


def test_period_keys_on_sunday():
    keys = period_keys(datetime(2025, 9, 28, 9, 0, tzinfo=BUSINESS_TZ))
    assert keys["week"] == "2025-09-28"


def test_format_time_12h():
    assert format_time_12h("16:00") == "4:00 PM"
    assert format_time_12h("00:30") == "12:30 AM"
    assert format_time_12h("12:00") == "12:00 PM"


def test_normalize_time_range():
    assert normalize_time_range("4:00pm - 7:00 pm") == "4:00 PM - 7:00 PM"
    assert normalize_time_range("16:00 PM - 19:00 PM") == "4:00 PM - 7:00 PM"
    assert normalize_time_range("  ") == ""
