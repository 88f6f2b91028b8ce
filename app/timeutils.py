"""Date and time helpers for booking slots in the business timezone."""

import re
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from app.config import get_settings

settings = get_settings()

BUSINESS_TZ = ZoneInfo(settings.BUSINESS_TIMEZONE)

DEFAULT_START = (18, 0)

_MONTHS = {
    "jan": 1, "january": 1,
    "feb": 2, "february": 2,
    "mar": 3, "march": 3,
    "apr": 4, "april": 4,
    "may": 5,
    "jun": 6, "june": 6,
    "jul": 7, "july": 7,
    "aug": 8, "august": 8,
    "sep": 9, "sept": 9, "september": 9,
    "oct": 10, "october": 10,
    "nov": 11, "november": 11,
    "dec": 12, "december": 12,
}

_WEEKDAY_PREFIX = re.compile(r"^[A-Za-z]+\s*,\s*")
_YMD = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")
_DMY = re.compile(r"^(\d{1,2})[/\-](\d{1,2})[/\-](\d{2,4})$")
_MONTH_DAY_YEAR = re.compile(r"^([A-Za-z]+)\s+(\d{1,2}),?\s*(\d{4})?$")
_DAY_MONTH_YEAR = re.compile(r"^(\d{1,2})\s*([A-Za-z]+)\s*(\d{4})?$")
_CLOCK = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)", re.IGNORECASE)


def now_ist() -> datetime:
    """Current time in the business timezone."""
    return datetime.now(BUSINESS_TZ)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_booking_date(value: str | None) -> date | None:
    """
    Parse the date formats customers and staff submit.

    Accepts "Thursday, October 2, 2025", "October 2, 2025", "2025-10-02",
    "2/10/2025" (day first) and "5 jan 2026". Returns None when the text
    cannot be read as a date.
    """
    if not value:
        return None
    text = str(value).strip()
    if not text:
        return None
    text = _WEEKDAY_PREFIX.sub("", text).strip()

    match = _YMD.match(text)
    if match:
        return _safe_date(int(match.group(1)), int(match.group(2)), int(match.group(3)))

    match = _DMY.match(text)
    if match:
        year = int(match.group(3))
        if year < 100:
            year += 2000
        return _safe_date(year, int(match.group(2)), int(match.group(1)))

    match = _MONTH_DAY_YEAR.match(text)
    if match and match.group(1).lower() in _MONTHS:
        year = int(match.group(3)) if match.group(3) else now_ist().year
        return _safe_date(year, _MONTHS[match.group(1).lower()], int(match.group(2)))

    match = _DAY_MONTH_YEAR.match(text)
    if match and match.group(2).lower() in _MONTHS:
        year = int(match.group(3)) if match.group(3) else now_ist().year
        return _safe_date(year, _MONTHS[match.group(2).lower()], int(match.group(1)))

    return None


def normalize_date_to_ymd(value: str | None) -> str | None:
    """Normalize any accepted date format to YYYY-MM-DD."""
    parsed = parse_booking_date(value)
    return parsed.isoformat() if parsed else None


def _clock_to_24h(hours: int, minutes: int, period: str) -> tuple[int, int]:
    period = period.lower()
    if period == "pm" and hours != 12:
        hours += 12
    elif period == "am" and hours == 12:
        hours = 0
    return hours, minutes


def parse_start_time(value: str | None) -> tuple[int, int]:
    """Start of a slot such as "4:00 PM - 7:00 PM" as (hour, minute)."""
    if not value:
        return DEFAULT_START
    start = str(value).split(" - ")[0].strip()
    match = _CLOCK.search(start)
    if not match:
        return DEFAULT_START
    return _clock_to_24h(int(match.group(1)), int(match.group(2) or 0), match.group(3))


def parse_end_time(value: str | None) -> tuple[int, int] | None:
    """End of a slot range, or None for a single time."""
    if not value or " - " not in str(value):
        return None
    end = str(value).split(" - ")[1].strip()
    match = _CLOCK.search(end)
    if not match:
        return None
    return _clock_to_24h(int(match.group(1)), int(match.group(2) or 0), match.group(3))


def booking_datetime(date_text: str | None, time_text: str | None) -> datetime:
    """Slot start as an aware datetime. Falls back to now when the date is unreadable."""
    booking_date = parse_booking_date(date_text)
    if booking_date is None:
        return now_ist()
    hour, minute = parse_start_time(time_text)
    return datetime(
        booking_date.year, booking_date.month, booking_date.day,
        hour, minute, tzinfo=BUSINESS_TZ,
    )


def booking_end_datetime(date_text: str | None, time_text: str | None) -> datetime | None:
    """Slot end as an aware datetime, rolling past midnight when needed."""
    booking_date = parse_booking_date(date_text)
    end = parse_end_time(time_text)
    if booking_date is None or end is None:
        return None
    start = booking_datetime(date_text, time_text)
    finish = datetime(
        booking_date.year, booking_date.month, booking_date.day,
        end[0], end[1], tzinfo=BUSINESS_TZ,
    )
    if finish <= start:
        finish += timedelta(days=1)
    return finish


def as_business_time(value: datetime) -> datetime:
    """Attach the business timezone to naive datetimes read back from the database."""
    if value.tzinfo is None:
        return value.replace(tzinfo=BUSINESS_TZ)
    return value.astimezone(BUSINESS_TZ)


def period_keys(now: datetime | None = None) -> dict[str, str]:
    """Reset keys for the day, week (starting Sunday), month and year."""
    now = now or now_ist()
    today = now.date()
    # Python weekday(): Monday is 0, so Sunday-based offset is (weekday + 1) % 7
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    return {
        "today": today.isoformat(),
        "week": week_start.isoformat(),
        "month": today.replace(day=1).isoformat(),
        "year": today.replace(month=1, day=1).isoformat(),
    }


def format_time_12h(time24: str) -> str:
    """Convert "16:00" to "4:00 PM"."""
    hours_text, _, minutes_text = time24.partition(":")
    hours = int(hours_text)
    minutes = int(minutes_text or 0)
    period = "PM" if hours >= 12 else "AM"
    return f"{hours % 12 or 12}:{minutes:02d} {period}"


def _normalize_time_part(token: str) -> str:
    trimmed = token.strip()
    if not trimmed:
        return ""
    match = _CLOCK.search(trimmed)
    if not match:
        return re.sub(r"\s+", " ", trimmed).upper()
    hour = int(match.group(1))
    if hour == 0:
        hour = 12
    if hour > 12:
        hour = hour % 12 or 12
    return f"{hour}:{match.group(2) or '00'} {match.group(3).upper()}"


def normalize_time_range(value: str | None) -> str:
    """Canonical "H:MM AM - H:MM PM" text for comparing slot ranges."""
    if not value or not value.strip():
        return ""
    parts = [_normalize_time_part(part) for part in value.split("-")]
    return " - ".join(part for part in parts if part)


def to_storage(value: datetime) -> datetime:
    """Naive business-timezone wall time, the form datetimes are stored in."""
    return as_business_time(value).replace(tzinfo=None)
