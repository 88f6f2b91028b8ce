"""Tests for booking counters and the Redis lock."""

import pytest

from app.config import get_settings
from app.distributed_lock import DistributedLock, DistributedLockError, distributed_lock
from app.models.counter import Counter
from app.services.counter_service import (
    CounterError,
    CounterService,
    format_booking_id,
    format_incomplete_id,
    format_ticket_number,
    reset_expired_periods,
)
from tests.conftest import FakeRedis


def test_identifier_formats():
    assert format_booking_id(7, 2030) == "FMT-2030-7"
    assert format_ticket_number(7) == "FMT0007"
    assert format_ticket_number(12345) == "FMT12345"
    assert format_incomplete_id(3) == "INC0003"


def test_reset_expired_periods_only_touches_stale_periods():
    counter = Counter(
        name="confirmed",
        today=3,
        week=5,
        month=9,
        year=20,
        total=40,
        last_reset_date="2030-01-14",
        last_reset_week="2030-01-13",
        last_reset_month="2030-01-01",
        last_reset_year="2030-01-01",
    )
    keys = {"today": "2030-01-15", "week": "2030-01-13", "month": "2030-01-01", "year": "2030-01-01"}

    assert reset_expired_periods(counter, keys) is True
    assert (counter.today, counter.week, counter.month, counter.year, counter.total) == (0, 5, 9, 20, 40)
    assert counter.last_reset_date == "2030-01-15"
    assert reset_expired_periods(counter, keys) is False


async def test_booking_sequence_is_sequential(db_session):
    service = CounterService(db_session, FakeRedis())

    assert await service.next_booking_sequence() == 1
    assert await service.next_booking_sequence() == 2
    assert await service.next_incomplete_sequence() == 1


async def test_booking_sequence_never_behind_counted_bookings(db_session):
    service = CounterService(db_session, FakeRedis())
    for _ in range(3):
        await service.increment("confirmed")

    assert await service.next_booking_sequence() == 4


async def test_sequence_fails_when_lock_is_held(db_session, monkeypatch):
    redis_client = FakeRedis()
    redis_client.store["lock:booking-sequence"] = "someone-else"
    service = CounterService(db_session, redis_client)

    monkeypatch.setattr(get_settings(), "LOCK_MAX_RETRIES", 1)
    monkeypatch.setattr(get_settings(), "LOCK_RETRY_DELAY_MS", 1)

    with pytest.raises(CounterError):
        await service.next_booking_sequence()


async def test_decrement_never_goes_negative(db_session):
    service = CounterService(db_session, FakeRedis())
    await service.increment("cancelled")

    await service.decrement("cancelled")
    await service.decrement("cancelled")

    counters = await service.get_all()
    assert counters["cancelled"] == {"today": 0, "week": 0, "month": 0, "year": 0, "total": 0}


async def test_staff_counters(db_session):
    service = CounterService(db_session, FakeRedis())
    await service.increment("staff:EMP7")
    await service.increment("staff:EMP7")

    assert await service.get_staff_counters() == {"EMP7": 2}


async def test_lock_is_exclusive_and_released():
    redis_client = FakeRedis()

    async with distributed_lock(redis_client, "booking:FMT-2030-1") as lock:
        assert redis_client.store["lock:booking:FMT-2030-1"] == lock.token
        with pytest.raises(DistributedLockError):
            async with distributed_lock(redis_client, "booking:FMT-2030-1", blocking=False):
                pass

    assert "lock:booking:FMT-2030-1" not in redis_client.store


async def test_release_leaves_lock_taken_over_by_someone_else():
    redis_client = FakeRedis()
    lock = DistributedLock(redis_client, "booking-sequence")
    assert await lock.acquire()

    redis_client.store["lock:booking-sequence"] = "new-owner"

    assert await lock.release() is False
    assert redis_client.store["lock:booking-sequence"] == "new-owner"
