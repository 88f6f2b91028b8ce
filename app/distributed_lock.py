"""
Redis locks serializing booking id allocation and per-booking order edits.

Lock names:
    booking-sequence       next FMT booking number
    incomplete-sequence    next INC checkout number
    booking:<bookingId>    order item changes on one booking
"""

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as redis

from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

BOOKING_SEQUENCE_LOCK = "booking-sequence"
INCOMPLETE_SEQUENCE_LOCK = "incomplete-sequence"

# Deletes the key only while it still holds the caller's token
_RELEASE_LUA = """
if redis.call("get", KEYS[1]) == ARGV[1] then
    return redis.call("del", KEYS[1])
end
return 0
"""


def booking_lock_name(booking_id: str) -> str:
    return f"booking:{booking_id}"


class DistributedLockError(Exception):
    """Raised when a lock is still held by someone else after all retries."""

    def __init__(self, name: str):
        super().__init__(f"Failed to acquire lock for key: {name}")
        self.name = name


class DistributedLock:
    """
    One named lock, stored as ``lock:<name>`` with an expiry.

    The expiry frees the lock if its holder dies; the token check on release
    keeps a slow holder from deleting a lock that has since passed to
    someone else.
    """

    def __init__(
        self,
        redis_client: redis.Redis,
        name: str,
        timeout_seconds: int | None = None,
        retry_delay_ms: int | None = None,
        max_retries: int | None = None,
    ):
        self.redis = redis_client
        self.name = name
        self.key = f"lock:{name}"
        self.timeout_seconds = timeout_seconds or settings.LOCK_TIMEOUT_SECONDS
        self.retry_delay_ms = retry_delay_ms or settings.LOCK_RETRY_DELAY_MS
        self.max_retries = max_retries or settings.LOCK_MAX_RETRIES
        self.token: str | None = None
        self._release = self.redis.register_script(_RELEASE_LUA)

    async def acquire(self, blocking: bool = True) -> bool:
        """
        Take the lock.

        Without ``blocking`` a single attempt is made; otherwise the attempt
        is repeated every ``retry_delay_ms`` up to ``max_retries`` more times.
        """
        token = uuid.uuid4().hex
        attempts = 1 + (self.max_retries if blocking else 0)
        for attempt in range(attempts):
            if attempt:
                await asyncio.sleep(self.retry_delay_ms / 1000)
            if await self.redis.set(self.key, token, nx=True, ex=self.timeout_seconds):
                self.token = token
                return True
        return False

    async def release(self) -> bool:
        """Give the lock back. Returns False if it had expired or changed hands."""
        token, self.token = self.token, None
        if token is None:
            return False
        return bool(await self._release(keys=[self.key], args=[token]))


@asynccontextmanager
async def distributed_lock(
    redis_client: redis.Redis,
    name: str,
    timeout_seconds: int | None = None,
    blocking: bool = True,
) -> AsyncIterator[DistributedLock]:
    """
    Hold ``name`` for the body of an ``async with`` block.

    Raises:
        DistributedLockError: If the lock cannot be taken
    """
    lock = DistributedLock(redis_client, name, timeout_seconds)
    if not await lock.acquire(blocking=blocking):
        logger.warning(f"Lock busy: {name}")
        raise DistributedLockError(name)
    try:
        yield lock
    finally:
        if not await lock.release():
            logger.warning(f"Lock {name} expired before release")
