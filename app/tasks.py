"""Periodic housekeeping: expire abandoned checkouts and archive finished bookings."""

import asyncio
import logging
from typing import Awaitable, Callable

from app.config import get_settings
from app.database import get_db_context
from app.redis_client import get_redis
from app.services.booking_service import BookingService

settings = get_settings()
logger = logging.getLogger(__name__)

Job = Callable[[BookingService], Awaitable[int]]


async def _run_periodically(name: str, job: Job) -> None:
    """Run ``job`` every CLEANUP_INTERVAL_SECONDS until cancelled."""
    logger.info(f"Starting {name} task")
    while True:
        try:
            async with get_db_context() as db:
                service = BookingService(db, await get_redis())
                affected = await job(service)
            if affected:
                logger.info(f"{name}: {affected} bookings")
        except Exception as e:
            logger.error(f"Error in {name} task: {e}")

        await asyncio.sleep(settings.CLEANUP_INTERVAL_SECONDS)


async def cleanup_expired_incomplete_bookings() -> None:
    await _run_periodically(
        "incomplete booking cleanup",
        lambda service: service.cleanup_expired_incomplete(),
    )


async def complete_expired_bookings() -> None:
    """Copy bookings whose slot has ended into the archive and drop them from the live table."""
    await _run_periodically(
        "booking auto-complete",
        lambda service: service.complete_expired_bookings(),
    )


class BackgroundTaskManager:
    """Owns the housekeeping tasks for the lifetime of the app."""

    def __init__(self):
        self.tasks: list[asyncio.Task] = []

    async def start(self) -> None:
        jobs = [cleanup_expired_incomplete_bookings]
        if settings.AUTO_COMPLETE_EXPIRED_BOOKINGS:
            jobs.append(complete_expired_bookings)
        self.tasks = [asyncio.create_task(job()) for job in jobs]
        logger.info(f"Background tasks started ({len(self.tasks)})")

    async def stop(self) -> None:
        for task in self.tasks:
            task.cancel()
        for task in self.tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        self.tasks.clear()
        logger.info("Background tasks stopped")


background_tasks = BackgroundTaskManager()
