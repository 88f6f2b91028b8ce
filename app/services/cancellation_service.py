"""Customer cancellation with the 72-hour refund policy."""

import logging
from dataclasses import dataclass
from datetime import datetime

import redis.asyncio as redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import refresh_if_expired
from app.models.booking import ArchiveKind, Booking, BookingStatus
from app.schemas.booking import CancelBookingRequest
from app.services.booking_service import BookingService
from app.services.counter_service import CounterService
from app.services.export_service import ExportService, booking_record
from app.services.pricing_service import round_amount
from app.timeutils import as_business_time, now_ist

logger = logging.getLogger(__name__)

REFUND_WINDOW_HOURS = 72
REFUND_RATIO = 0.25
DEFAULT_CANCEL_REASON = "Cancelled by Customer"


class CancellationError(Exception):
    """Cancellation error."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class RefundDecision:
    amount: float
    status: str
    hours_until_booking: float

    @property
    def message(self) -> str:
        if self.amount > 0:
            return f"Refund of ₹{int(self.amount)} will be processed within 5-7 business days"
        return "No refund applicable as per cancellation policy"


def decide_refund(total_amount: float, booking_at: datetime, now: datetime) -> RefundDecision:
    """Refund a quarter of the total when more than 72 hours remain before the slot."""
    hours = (as_business_time(booking_at) - now).total_seconds() / 3600
    if hours > REFUND_WINDOW_HOURS:
        return RefundDecision(round_amount(total_amount * REFUND_RATIO), "refundable", hours)
    return RefundDecision(0.0, "non-refundable", hours)


def cancelled_record(
    booking: Booking,
    reason: str,
    refund: RefundDecision,
    cancelled_at: datetime,
) -> dict:
    total = booking.total_amount or 0
    record = booking_record(booking)
    record.update(
        {
            "status": BookingStatus.CANCELLED.value,
            "advancePayment": round_amount(total * REFUND_RATIO),
            "venuePayment": round_amount(total * (1 - REFUND_RATIO)),
            "cancelReason": reason,
            "refundAmount": refund.amount,
            "refundStatus": refund.status,
            "cancelledAt": cancelled_at.isoformat(),
        }
    )
    return record


class CancellationService:
    """Service for customer cancellations."""

    def __init__(self, db: AsyncSession, redis_client: redis.Redis):
        self.db = db
        self.redis = redis_client
        self.counters = CounterService(db, redis_client)
        self.exports = ExportService(db)

    async def cancel_booking(self, request: CancelBookingRequest) -> tuple[dict, RefundDecision]:
        """
        Cancel a booking on behalf of its customer.

        The booking is archived as cancelled and removed from the live table.

        Returns:
            (cancelled archive record, refund decision)

        Raises:
            CancellationError: If the request is incomplete, the booking is
                unknown, the email does not match or it is already cancelled
        """
        if not request.booking_id or not request.email:
            raise CancellationError("Missing required fields: bookingId and email")

        booking = await BookingService(self.db, self.redis).get_booking(request.booking_id)
        if booking is None:
            raise CancellationError("Booking not found", status_code=404)
        if booking.email.lower() != request.email.strip().lower():
            raise CancellationError("Email does not match booking", status_code=403)
        if booking.status == BookingStatus.CANCELLED:
            raise CancellationError("Booking is already cancelled")

        now = now_ist()
        refund = decide_refund(booking.total_amount or 0, booking.booking_at, now)
        reason = (request.cancel_reason or "").strip() or DEFAULT_CANCEL_REASON
        record = cancelled_record(booking, reason, refund, now)
        original_kind = "manual" if booking.status == BookingStatus.MANUAL else "confirmed"

        if not await self.exports.append_archive(ArchiveKind.CANCELLED, record):
            await refresh_if_expired(self.db, booking)
        await self.db.delete(booking)
        await self.db.commit()
        logger.info(
            f"Booking cancelled: {record['bookingId']} "
            f"(refund {refund.amount}, {refund.status}, {refund.hours_until_booking:.1f}h before slot)"
        )

        await self.counters.safe_increment("cancelled")
        await self.counters.safe_decrement(original_kind, include_total=False)
        return record, refund
