"""Slot availability for a date, per theater."""

import logging
import re
from datetime import datetime, timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, IncompleteBooking
from app.models.catalog import Theater
from app.schemas.admin import SlotStatus
from app.services.catalog_service import CatalogService
from app.timeutils import format_time_12h, normalize_date_to_ymd, normalize_time_range, parse_booking_date

logger = logging.getLogger(__name__)

DEFAULT_TIME_SLOTS = [
    {"slotId": "SLOT-09:00", "startTime": "09:00", "endTime": "12:00", "duration": 180, "isActive": True},
    {"slotId": "SLOT-12:30", "startTime": "12:30", "endTime": "15:30", "duration": 180, "isActive": True},
    {"slotId": "SLOT-16:00", "startTime": "16:00", "endTime": "19:00", "duration": 180, "isActive": True},
    {"slotId": "SLOT-19:30", "startTime": "19:30", "endTime": "22:30", "duration": 180, "isActive": True},
]

# Statuses that occupy a slot when listing booked times
BOOKED_STATUSES = {"completed", "pending", "manual", "confirmed"}
# Statuses that mark a slot as booked in the per-theater view
OCCUPYING_STATUSES = {"confirmed", "completed", "pending", "manual", "paid"}


class SlotError(Exception):
    """Slot query error."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def normalize_status(status) -> str:
    """Lowercase a status and strip any "(...)" suffix and whitespace."""
    text = str(getattr(status, "value", status) or "").lower()
    text = re.sub(r"\(.*?\)", "", text)
    return re.sub(r"\s+", "", text)


def _theater_matches(booked_theater: str | None, theater: str | None) -> bool:
    if not theater:
        return True
    if not booked_theater:
        return False
    return booked_theater.strip().lower() == theater.strip().lower()


def slot_status(slot: dict, booked_ranges: set[str]) -> SlotStatus:
    start = slot.get("startTime") or "00:00"
    end = slot.get("endTime") or "00:00"
    time_range = f"{format_time_12h(start)} - {format_time_12h(end)}"
    return SlotStatus(
        slot_id=slot.get("slotId") or f"SLOT-{start}",
        start_time=start,
        end_time=end,
        time_range=time_range,
        duration=int(slot.get("duration") or 180),
        is_active=slot.get("isActive", True) is not False,
        booking_status="booked" if normalize_time_range(time_range) in booked_ranges else "available",
    )


class SlotService:
    """Service for slot availability queries."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.catalog = CatalogService(db)

    async def _rows_on(self, date_ymd: str, model) -> list:
        day = parse_booking_date(date_ymd)
        if day is None:
            return []
        # booking_at is the slot start on the parsed date, in stored wall time
        start = datetime(day.year, day.month, day.day)
        result = await self.db.execute(
            select(model).where(
                model.booking_at >= start,
                model.booking_at < start + timedelta(days=1),
            )
        )
        return [
            row for row in result.scalars().all()
            if normalize_date_to_ymd(row.date) == date_ymd
        ]

    async def booked_slots(self, date: str | None, theater: str | None = None) -> list[str]:
        """
        Times already taken on a date, from bookings and pending checkouts.

        Raises:
            SlotError: If no date is given
        """
        if not date or not date.strip():
            raise SlotError("Date parameter is required")

        date_ymd = normalize_date_to_ymd(date) or date.strip()
        rows = await self._rows_on(date_ymd, Booking)
        rows += await self._rows_on(date_ymd, IncompleteBooking)

        return [
            row.time
            for row in rows
            if row.time
            and _theater_matches(row.theater_name, theater)
            and normalize_status(row.status) in BOOKED_STATUSES
        ]

    async def _booked_ranges(self, date_ymd: str | None, theater: Theater | None, theater_name: str | None) -> set[str]:
        if not date_ymd:
            return set()
        names = {theater_name.strip().lower()} if theater_name else set()
        if theater is not None:
            names.add(theater.name.lower())

        ranges = set()
        for booking in await self._rows_on(date_ymd, Booking):
            if normalize_status(booking.status) not in OCCUPYING_STATUSES:
                continue
            if names and (booking.theater_name or "").strip().lower() not in names:
                continue
            normalized = normalize_time_range(booking.time)
            if normalized:
                ranges.add(normalized)
        return ranges

    async def time_slots_with_bookings(self, date: str | None, theater_name: str | None) -> list[SlotStatus]:
        """Active slots of a theater, each marked available or booked for the date."""
        theater = await self.catalog.find_theater(theater_name)
        slots = (theater.time_slots if theater is not None else None) or DEFAULT_TIME_SLOTS
        booked = await self._booked_ranges(normalize_date_to_ymd(date), theater, theater_name)

        statuses = [slot_status(slot, booked) for slot in slots]
        return [status for status in statuses if status.is_active]

    async def available_slots(self, date: str) -> dict[str, list[str]]:
        """Free slot ranges on a date for every active theater."""
        availability = {}
        for theater in await self.catalog.list_theaters(active_only=True):
            slots = await self.time_slots_with_bookings(date, theater.name)
            availability[theater.name] = [
                slot.time_range for slot in slots if slot.booking_status == "available"
            ]
        logger.debug(f"Availability computed for {date}: {len(availability)} theaters")
        return availability
