"""Booking service: creation, lookup, admin updates and incomplete checkouts."""

import logging
import re
from datetime import timedelta

import redis.asyncio as redis
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import refresh_if_expired
from app.models.booking import ArchiveKind, Booking, BookingStatus, IncompleteBooking
from app.models.catalog import Occasion
from app.schemas.admin import ConfirmedToday, DashboardStats, PeriodStats
from app.schemas.booking import BookingCreate, BookingUpdate, IncompleteBookingCreate
from app.services.catalog_service import CatalogService
from app.services.counter_service import (
    CounterError,
    CounterService,
    format_booking_id,
    format_incomplete_id,
    format_ticket_number,
    staff_counter_name,
)
from app.services.export_service import ExportService, booking_record
from app.services.pricing_service import (
    DEFAULT_CAPACITY_MIN,
    DEFAULT_PRICING,
    decoration_applied_fee,
    default_advance,
    extra_guests,
    normalize_payment_status,
    resolve_slot_booking_fee,
    resolve_venue_payment,
)
from app.timeutils import (
    booking_datetime,
    booking_end_datetime,
    now_ist,
    parse_booking_date,
    to_storage,
)

settings = get_settings()
logger = logging.getLogger(__name__)

REQUIRED_FIELDS = (
    ("name", "name"),
    ("email", "email"),
    ("phone", "phone"),
    ("theater_name", "theaterName"),
    ("date", "date"),
    ("time", "time"),
    ("occasion", "occasion"),
)


class BookingError(Exception):
    """Booking operation error."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def _clean(value) -> str | None:
    if value is None or isinstance(value, (dict, list)):
        return None
    text = str(value).strip()
    return text or None


def _as_float(value) -> float:
    try:
        return float(value) if value not in (None, "") else 0.0
    except (TypeError, ValueError):
        return 0.0


def _first_amount(*values) -> float:
    """First positive amount, else 0."""
    for value in values:
        amount = _as_float(value)
        if amount > 0:
            return amount
    return 0.0


def missing_required_fields(request: BookingCreate) -> list[str]:
    return [
        wire_name
        for attr, wire_name in REQUIRED_FIELDS
        if not _clean(getattr(request, attr))
    ]


def collect_occasion_fields(request: BookingCreate, occasion: Occasion | None) -> dict[str, str]:
    """
    Occasion values for a booking.

    Uses the occasion's required fields found in ``occasionData``, else every
    non-empty ``occasionData`` entry, else legacy top-level request keys named
    by the required fields.
    """
    data = request.occasion_data
    required = list(occasion.required_fields or []) if occasion else []

    fields = {}
    for key in required:
        value = _clean(data.get(key))
        if value:
            fields[key] = value
    if fields:
        return fields

    for key, raw in data.items():
        value = _clean(raw)
        if value:
            fields[key] = value
    if fields:
        return fields

    for key in required:
        value = _clean(request.extra_value(key))
        if value:
            fields[key] = value
    return fields


def _squash(text: str) -> str:
    return re.sub(r"\s+", "", text.lower())


def _words_match(field: str, key: str) -> bool:
    key_words = key.lower().split()
    return all(
        any(word in key_word or key_word in word for key_word in key_words)
        for word in field.lower().split()
    )


def match_occasion_value(field: str, position: int, data: dict) -> str | None:
    """Find the value submitted for an occasion field under a loosely matching key."""
    value = _clean(data.get(field))
    if value:
        return value

    for key, raw in data.items():
        if _squash(key) == _squash(field) or _words_match(field, key):
            value = _clean(raw)
            break
    if value:
        return value

    keys = list(data.keys())
    if 0 <= position < len(keys):
        return _clean(data[keys[position]])
    return None


def labelled_occasion_fields(request: BookingCreate, occasion: Occasion | None) -> dict[str, str]:
    """Occasion values with ``<field>_label`` and ``<field>_value`` companions."""
    if occasion is None or not occasion.required_fields:
        values = collect_occasion_fields(request, occasion)
        labels = {field: field for field in values}
    else:
        values = {}
        for position, field in enumerate(occasion.required_fields):
            value = match_occasion_value(field, position, request.occasion_data)
            if value:
                values[field] = value
        labels = {field: (occasion.field_labels or {}).get(field) or field for field in values}

    fields = {}
    for field, value in values.items():
        fields[field] = value
        fields[f"{field}_label"] = labels[field]
        fields[f"{field}_value"] = value
    return fields


def _service_items(request: BookingCreate) -> dict[str, list[dict]]:
    return {
        field: [item.to_record() for item in items]
        for field, items in request.service_selections().items()
    }


class BookingService:
    """Service for booking operations."""

    def __init__(self, db: AsyncSession, redis_client: redis.Redis):
        self.db = db
        self.redis = redis_client
        self.counters = CounterService(db, redis_client)
        self.catalog = CatalogService(db)
        self.exports = ExportService(db)

    async def create_booking(self, request: BookingCreate, labelled: bool = False) -> Booking:
        """
        Create a confirmed or manual booking.

        Args:
            request: Booking request
            labelled: New-booking flavor. Defaults the advance to 30% of the
                total and stores occasion fields with labels.

        Returns:
            Created booking

        Raises:
            BookingError: If required fields are missing or no id can be allocated
        """
        missing = missing_required_fields(request)
        if missing:
            raise BookingError(f"Missing required fields: {', '.join(missing)}")

        total = _as_float(request.total_amount)
        if request.advance_payment is not None:
            advance = float(request.advance_payment)
        else:
            advance = default_advance(total) if labelled else 0.0
        slot_fee = resolve_slot_booking_fee(request, advance)
        venue = resolve_venue_payment(request, total, slot_fee)

        theater = await self.catalog.find_theater(request.theater_name.strip())
        capacity_min = theater.capacity_min if theater else DEFAULT_CAPACITY_MIN
        people = request.number_of_people
        if request.extra_guests_count is not None:
            extra_count = request.extra_guests_count
        else:
            extra_count = extra_guests(people, capacity_min)
        if request.extra_guest_charges is not None:
            extra_charges = float(request.extra_guest_charges)
        else:
            pricing = request.pricing_data
            fee = pricing.extra_guest_fee if pricing and pricing.extra_guest_fee is not None else None
            extra_charges = extra_count * (fee if fee is not None else DEFAULT_PRICING["extraGuestFee"])

        occasion = await self.catalog.get_occasion_by_name(request.occasion.strip())
        if labelled:
            occasion_fields = labelled_occasion_fields(request, occasion)
        else:
            occasion_fields = collect_occasion_fields(request, occasion)

        is_manual = request.is_manual_booking or (
            str(request.extra_value("status") or "").lower() == "manual"
        )
        starts_at = booking_datetime(request.date, request.time)
        ends_at = booking_end_datetime(request.date, request.time)

        try:
            sequence = await self.counters.next_booking_sequence()
        except CounterError as e:
            raise BookingError(str(e), status_code=500)

        booking = Booking(
            booking_id=format_booking_id(sequence, now_ist().year),
            ticket_number=format_ticket_number(sequence),
            name=request.name.strip(),
            email=request.email.strip().lower(),
            phone=request.phone.strip(),
            theater_name=request.theater_name.strip(),
            date=request.date.strip(),
            time=request.time.strip(),
            booking_at=to_storage(starts_at),
            expired_at=to_storage(ends_at) if ends_at else None,
            occasion=request.occasion.strip(),
            number_of_people=people,
            status=BookingStatus.MANUAL if is_manual else BookingStatus.CONFIRMED,
            booking_type="Manual" if is_manual else "Online",
            is_manual_booking=is_manual,
            created_by=_clean(request.created_by) or "Customer",
            staff_id=_clean(request.staff_id),
            staff_name=_clean(request.staff_name),
            notes=request.notes,
            payment_status=normalize_payment_status(request.payment_status),
            payment_method=request.payment_method,
            venue_payment_method=request.venue_payment_method,
            total_amount=total,
            advance_payment=advance,
            slot_booking_fee=slot_fee,
            venue_payment=venue,
            extra_guests_count=extra_count,
            extra_guest_charges=extra_charges,
            decoration_applied_fee=decoration_applied_fee(request),
            want_decor_items=request.want_decor_items,
            coupon_code=_clean(request.coupon_code) or _clean(request.applied_coupon_code),
            coupon_discount_type=_clean(request.coupon_discount_type),
            coupon_discount_value=request.coupon_discount_value,
            discount_amount=_first_amount(request.discount_amount, request.coupon_discount),
            special_discount=_first_amount(request.special_discount, request.admin_discount),
            generic_discount=_first_amount(request.extra_value("Discount"), request.extra_value("discount")),
            penalty_charges=_as_float(request.penalty_charges),
            penalty_reason=request.penalty_reason,
            pricing_data=(
                request.pricing_data.model_dump(by_alias=True, exclude_none=True)
                if request.pricing_data
                else {}
            ),
            occasion_fields=occasion_fields,
            service_items=_service_items(request),
        )
        self.db.add(booking)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise BookingError("Booking ID already exists. Please try again.", status_code=409)
        await self.db.refresh(booking)
        logger.info(f"Booking created: {booking.booking_id} ({booking.booking_type})")

        await self.counters.safe_increment("manual" if is_manual else "confirmed")
        if is_manual and booking.staff_id:
            await self.counters.safe_increment(staff_counter_name(booking.staff_id))

        if request.incomplete_booking_id:
            try:
                await self.delete_incomplete(request.incomplete_booking_id)
            except Exception as e:
                await self.db.rollback()
                logger.warning(
                    f"Failed to remove incomplete booking {request.incomplete_booking_id}: {e}"
                )

        await refresh_if_expired(self.db, booking)
        return booking

    async def get_booking(self, booking_id: str) -> Booking | None:
        """Get a booking by booking id or ticket number."""
        result = await self.db.execute(
            select(Booking).where(
                (Booking.booking_id == booking_id) | (Booking.ticket_number == booking_id)
            )
        )
        return result.scalars().first()

    async def list_bookings(self, status: BookingStatus | None = None) -> list[Booking]:
        query = select(Booking)
        if status:
            query = query.where(Booking.status == status)
        query = query.order_by(Booking.created_at.desc(), Booking.id.desc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update_booking(self, data: BookingUpdate) -> Booking:
        """
        Apply an admin update.

        Moving a booking to completed stamps it and copies it into the
        completed archive.
        """
        booking = await self.get_booking(data.booking_id)
        if booking is None:
            raise BookingError("Booking not found", status_code=404)

        was_completed = booking.status == BookingStatus.COMPLETED
        changes = data.model_dump(exclude={"booking_id", "status", "payment_status"}, exclude_unset=True)
        for field, value in changes.items():
            if value is not None:
                setattr(booking, field, value)
        if data.payment_status is not None:
            booking.payment_status = normalize_payment_status(data.payment_status)
        if data.status is not None:
            booking.status = BookingStatus(data.status)

        completing = booking.status == BookingStatus.COMPLETED and not was_completed
        if completing:
            booking.completed_at = to_storage(now_ist())

        await self.db.commit()
        await self.db.refresh(booking)
        logger.info(f"Booking updated: {booking.booking_id}")

        if completing:
            await self.exports.append_archive(ArchiveKind.COMPLETED, booking_record(booking))
            await self.counters.safe_increment("completed")
            await refresh_if_expired(self.db, booking)
        return booking

    async def delete_booking(self, booking_id: str) -> None:
        booking = await self.get_booking(booking_id)
        if booking is None:
            raise BookingError("Booking not found", status_code=404)
        await self.db.delete(booking)
        await self.db.commit()
        logger.info(f"Booking deleted: {booking_id}")

    async def complete_expired_bookings(self) -> int:
        """Archive and remove bookings whose slot has ended. Returns the count."""
        result = await self.db.execute(
            select(Booking).where(
                Booking.status.in_([BookingStatus.CONFIRMED, BookingStatus.MANUAL]),
                Booking.expired_at.is_not(None),
                Booking.expired_at <= to_storage(now_ist()),
            )
        )
        bookings = list(result.scalars().all())
        completed = 0
        for booking in bookings:
            booking.status = BookingStatus.COMPLETED
            booking.completed_at = to_storage(now_ist())
            record = booking_record(booking)
            if not await self.exports.append_archive(ArchiveKind.COMPLETED, record):
                continue
            await self.db.delete(booking)
            await self.db.commit()
            await self.counters.safe_increment("completed")
            completed += 1
        if completed:
            logger.info(f"Auto-completed {completed} expired bookings")
        return completed

    async def dashboard_stats(self) -> DashboardStats:
        counters = await self.counters.get_all()

        def period(kind: str) -> PeriodStats:
            values = counters[kind]
            return PeriodStats(
                today=values["today"],
                this_week=values["week"],
                this_month=values["month"],
                this_year=values["year"],
                total=values["total"],
            )

        online = period("confirmed")
        manual = period("manual")
        theaters = await self.catalog.list_theaters(active_only=True)
        return DashboardStats(
            online_bookings=online,
            manual_bookings=manual,
            completed_bookings=period("completed"),
            cancelled_bookings=period("cancelled"),
            incomplete_bookings=period("incomplete"),
            all_bookings=online + manual,
            active_halls={"total": len(theaters)},
            confirmed_today=ConfirmedToday(
                confirmed=online.today + manual.today,
                completed=counters["completed"]["today"],
            ),
        )

    # Incomplete bookings

    async def create_incomplete(self, data: IncompleteBookingCreate) -> IncompleteBooking:
        """
        Save an abandoned checkout.

        Raises:
            BookingError: If the email is missing
        """
        email = _clean(data.email)
        if not email:
            raise BookingError("Email is required")

        try:
            sequence = await self.counters.next_incomplete_sequence()
        except CounterError as e:
            raise BookingError(str(e), status_code=500)

        starts_at = booking_datetime(data.date, data.time) if parse_booking_date(data.date) else None
        incomplete = IncompleteBooking(
            booking_id=format_incomplete_id(sequence),
            name=_clean(data.name),
            email=email.lower(),
            phone=_clean(data.phone),
            theater_name=_clean(data.theater_name),
            date=_clean(data.date),
            time=_clean(data.time),
            occasion=_clean(data.occasion),
            number_of_people=data.number_of_people,
            total_amount=_as_float(data.total_amount),
            occasion_fields={
                key: _clean(value) for key, value in data.occasion_data.items() if _clean(value)
            },
            booking_at=to_storage(starts_at) if starts_at else None,
            expires_at=to_storage(now_ist() + timedelta(hours=settings.INCOMPLETE_BOOKING_TTL_HOURS)),
        )
        self.db.add(incomplete)
        await self.db.commit()
        await self.db.refresh(incomplete)
        logger.info(f"Incomplete booking saved: {incomplete.booking_id} for {incomplete.email}")

        await self.counters.safe_increment("incomplete")
        return incomplete

    async def get_incomplete(self, booking_id: str) -> IncompleteBooking | None:
        result = await self.db.execute(
            select(IncompleteBooking).where(IncompleteBooking.booking_id == booking_id)
        )
        return result.scalar_one_or_none()

    async def delete_incomplete(self, booking_id: str) -> bool:
        result = await self.db.execute(
            delete(IncompleteBooking).where(IncompleteBooking.booking_id == booking_id)
        )
        await self.db.commit()
        return result.rowcount > 0

    async def cleanup_expired_incomplete(self) -> int:
        """Delete incomplete bookings past their expiry. Returns the count."""
        result = await self.db.execute(
            delete(IncompleteBooking).where(IncompleteBooking.expires_at <= to_storage(now_ist()))
        )
        await self.db.commit()
        deleted = result.rowcount or 0
        if deleted:
            logger.info(f"Removed {deleted} expired incomplete bookings")
        return deleted
