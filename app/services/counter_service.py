"""Booking counters and sequential identifiers."""

import logging
from datetime import datetime

import redis.asyncio as redis
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.distributed_lock import (
    BOOKING_SEQUENCE_LOCK,
    INCOMPLETE_SEQUENCE_LOCK,
    DistributedLockError,
    distributed_lock,
)
from app.models.counter import Counter
from app.timeutils import now_ist, period_keys

logger = logging.getLogger(__name__)

COUNTER_KINDS = ("confirmed", "manual", "completed", "cancelled", "incomplete")

BOOKING_SEQUENCE = "bookingSequence"
INCOMPLETE_SEQUENCE = "incompleteSequence"

_PERIODS = (
    ("today", "last_reset_date", "today"),
    ("week", "last_reset_week", "week"),
    ("month", "last_reset_month", "month"),
    ("year", "last_reset_year", "year"),
)


class CounterError(Exception):
    """Counter operation error."""

    pass


def format_booking_id(sequence: int, year: int) -> str:
    return f"FMT-{year}-{sequence}"


def format_ticket_number(sequence: int) -> str:
    return f"FMT{sequence:04d}"


def format_incomplete_id(sequence: int) -> str:
    return f"INC{sequence:04d}"


def staff_counter_name(staff_id: str) -> str:
    return f"staff:{staff_id}"


def reset_expired_periods(counter: Counter, keys: dict[str, str]) -> bool:
    """Zero each period tally whose reset key is stale. Returns True if anything changed."""
    changed = False
    for attr, reset_attr, key in _PERIODS:
        if getattr(counter, reset_attr) != keys[key]:
            setattr(counter, attr, 0)
            setattr(counter, reset_attr, keys[key])
            changed = True
    return changed


class CounterService:
    """Service for booking counters with distributed locking."""

    def __init__(self, db: AsyncSession, redis_client: redis.Redis):
        self.db = db
        self.redis = redis_client

    async def _get_counter(self, name: str, now: datetime | None = None) -> Counter:
        result = await self.db.execute(
            select(Counter).where(Counter.name == name).with_for_update()
        )
        counter = result.scalar_one_or_none()
        keys = period_keys(now or now_ist())
        if counter is None:
            counter = Counter(
                name=name,
                today=0,
                week=0,
                month=0,
                year=0,
                total=0,
                last_reset_date=keys["today"],
                last_reset_week=keys["week"],
                last_reset_month=keys["month"],
                last_reset_year=keys["year"],
            )
            self.db.add(counter)
        else:
            reset_expired_periods(counter, keys)
        return counter

    async def next_booking_sequence(self) -> int:
        """
        Allocate the next booking sequence number.

        The sequence never falls behind the number of bookings ever counted,
        so ids stay unique even if the sequence row was reset.

        Raises:
            CounterError: If the sequence lock cannot be acquired
        """
        try:
            async with distributed_lock(self.redis, BOOKING_SEQUENCE_LOCK):
                sequence = await self._get_counter(BOOKING_SEQUENCE)
                confirmed = await self._get_counter("confirmed")
                manual = await self._get_counter("manual")
                next_value = max(sequence.total, confirmed.total + manual.total) + 1
                sequence.total = next_value
                await self.db.commit()
                return next_value
        except DistributedLockError:
            raise CounterError("Unable to allocate booking number. Please try again.")

    async def next_incomplete_sequence(self) -> int:
        try:
            async with distributed_lock(self.redis, INCOMPLETE_SEQUENCE_LOCK):
                sequence = await self._get_counter(INCOMPLETE_SEQUENCE)
                sequence.total += 1
                await self.db.commit()
                return sequence.total
        except DistributedLockError:
            raise CounterError("Unable to allocate incomplete booking number.")

    async def increment(self, name: str, include_total: bool = True) -> None:
        counter = await self._get_counter(name)
        counter.today += 1
        counter.week += 1
        counter.month += 1
        counter.year += 1
        if include_total:
            counter.total += 1
        await self.db.commit()

    async def decrement(self, name: str, include_total: bool = True) -> None:
        counter = await self._get_counter(name)
        counter.today = max(0, counter.today - 1)
        counter.week = max(0, counter.week - 1)
        counter.month = max(0, counter.month - 1)
        counter.year = max(0, counter.year - 1)
        if include_total:
            counter.total = max(0, counter.total - 1)
        await self.db.commit()

    async def safe_increment(self, name: str) -> None:
        """Increment without failing the caller; counters are advisory."""
        try:
            await self.increment(name)
        except Exception as e:
            await self.db.rollback()
            logger.warning(f"Failed to increment counter {name}: {e}")

    async def safe_decrement(self, name: str, include_total: bool = True) -> None:
        try:
            await self.decrement(name, include_total=include_total)
        except Exception as e:
            await self.db.rollback()
            logger.warning(f"Failed to decrement counter {name}: {e}")

    async def get_all(self) -> dict[str, dict[str, int]]:
        """Current tallies for every booking kind, with stale periods reset."""
        counters = {}
        for kind in COUNTER_KINDS:
            counter = await self._get_counter(kind)
            counters[kind] = {
                "today": counter.today,
                "week": counter.week,
                "month": counter.month,
                "year": counter.year,
                "total": counter.total,
            }
        await self.db.commit()
        return counters

    async def get_staff_counters(self) -> dict[str, int]:
        result = await self.db.execute(
            select(Counter).where(Counter.name.like("staff:%"))
        )
        return {
            counter.name.split(":", 1)[1]: counter.total
            for counter in result.scalars().all()
        }

    async def reset_all(self) -> None:
        """Zero every booking counter. Id sequences are left untouched."""
        keys = period_keys()
        result = await self.db.execute(
            select(Counter).where(Counter.name.notin_([BOOKING_SEQUENCE, INCOMPLETE_SEQUENCE]))
        )
        for counter in result.scalars().all():
            counter.today = counter.week = counter.month = counter.year = 0
            counter.total = 0
            counter.last_reset_date = keys["today"]
            counter.last_reset_week = keys["week"]
            counter.last_reset_month = keys["month"]
            counter.last_reset_year = keys["year"]
        await self.db.commit()
        logger.info("All booking counters reset")
