"""Order items: add, remove or clear a booking's service items after booking."""

import logging
import re

import redis.asyncio as redis
from pydantic import ValidationError
from sqlalchemy import delete, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import refresh_if_expired
from app.distributed_lock import DistributedLockError, booking_lock_name, distributed_lock
from app.models.booking import ArchiveKind, Booking, BookingStatus, PaymentStatus
from app.models.order import OrderRecord
from app.schemas.booking import ServiceItem, sum_items
from app.schemas.order import OrderBookingSummary, OrderItemsRequest
from app.services.counter_service import CounterService
from app.services.export_service import ExportService, booking_record
from app.timeutils import now_ist, to_storage

logger = logging.getLogger(__name__)

# Matched first exactly, then as a substring of the lowercased service name
SERVICE_FIELD_MAP = {
    "food": "selectedFoodItems",
    "foods": "selectedFoodItems",
    "snack": "selectedFoodItems",
    "snacks": "selectedFoodItems",
    "beverage": "selectedFoodItems",
    "beverages": "selectedFoodItems",
    "drink": "selectedFoodItems",
    "drinks": "selectedFoodItems",
    "decor": "selectedDecorItems",
    "decoration": "selectedDecorItems",
    "decorations": "selectedDecorItems",
    "addon": "selectedExtraAddOns",
    "add-ons": "selectedExtraAddOns",
    "add on": "selectedExtraAddOns",
    "add": "selectedExtraAddOns",
    "extra": "selectedExtraAddOns",
    "extras": "selectedExtraAddOns",
    "cake": "selectedCakes",
    "cakes": "selectedCakes",
    "movie": "selectedMovies",
    "movies": "selectedMovies",
    "photo": "selectedPhotography",
    "photos": "selectedPhotography",
    "photography": "selectedPhotography",
}

HIDDEN_SERVICE_FIELDS = {"selectedMovies"}

PAID_MESSAGE = "Items saved and booking marked as paid. Invoice will now include these items."
SAVED_MESSAGE = "Items saved successfully for this booking."


class OrderItemsError(Exception):
    """Order items operation error."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def resolve_service_field(service_name: str) -> tuple[str | None, str, bool]:
    """
    Map a service name onto the booking field holding its items.

    Returns:
        (canonical field or None, service field, is decoration category)
    """
    trimmed = service_name.strip()
    normalized = trimmed.lower()

    canonical = SERVICE_FIELD_MAP.get(normalized)
    if canonical is None:
        for key, field in SERVICE_FIELD_MAP.items():
            if key in normalized:
                canonical = field
                break

    sanitized = re.sub(r"[^a-zA-Z0-9]+", "", trimmed)
    service_field = f"selected{sanitized}" if sanitized else canonical or "selectedFoodItems"
    return canonical, service_field, canonical == "selectedDecorItems"


def normalize_items(
    raw_items: list,
    service_name: str | None = None,
    is_decoration: bool | None = None,
) -> list[ServiceItem]:
    """Validate raw items, dropping the ones without a name or with a bad price or quantity."""
    items = []
    for index, raw in enumerate(raw_items or []):
        if not isinstance(raw, (dict, ServiceItem)):
            continue
        try:
            item = ServiceItem.model_validate(raw)
        except ValidationError:
            logger.debug(f"Skipping invalid order item at index {index}")
            continue

        updates = {}
        if not item.id:
            slug = re.sub(r"\s+", "-", item.name.lower())
            updates["id"] = f"{slug}-{index}"
        if service_name:
            updates["service_name"] = service_name
        if is_decoration:
            updates["is_decoration"] = True
        if item.veg_type is None:
            updates["veg_type"] = "veg"
        items.append(item.model_copy(update=updates) if updates else item)
    return items


def visible_service_items(booking: Booking) -> dict[str, list[dict]]:
    return {
        field: [item.to_record() for item in normalize_items(items)]
        for field, items in (booking.service_items or {}).items()
        if field not in HIDDEN_SERVICE_FIELDS and isinstance(items, list)
    }


def booking_summary(booking: Booking) -> OrderBookingSummary:
    return OrderBookingSummary(
        booking_id=booking.booking_id,
        ticket_number=booking.ticket_number,
        name=booking.name,
        email=booking.email,
        phone=booking.phone,
        theater_name=booking.theater_name,
        date=booking.date,
        time=booking.time,
        occasion=booking.occasion,
        number_of_people=booking.number_of_people,
        total_amount=booking.total_amount or 0,
        advance_payment=booking.advance_payment or 0,
        venue_payment=booking.venue_payment or 0,
        payment_status=booking.payment_status.value,
        status=booking.status.value,
        dynamic_service_items=visible_service_items(booking),
    )


def _action_type(explicit_clear: bool, removed: list, added: list) -> str:
    if explicit_clear:
        return "clear"
    if removed and added:
        return "update"
    if removed:
        return "remove"
    return "append"


def _records(items: list[ServiceItem]) -> list[dict]:
    return [item.to_record() for item in items]


class OrderItemsService:
    """Service for order-items mutations with distributed locking."""

    def __init__(self, db: AsyncSession, redis_client: redis.Redis):
        self.db = db
        self.redis = redis_client
        self.counters = CounterService(db, redis_client)
        self.exports = ExportService(db)

    async def _find_booking(self, key: str, for_update: bool = False) -> Booking | None:
        query = select(Booking).where(
            or_(Booking.ticket_number == key, Booking.booking_id == key)
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalars().first()

    async def get_order_items(self, ticket_number: str | None) -> tuple[Booking, list[OrderRecord]]:
        ticket_number = (ticket_number or "").strip()
        if not ticket_number:
            raise OrderItemsError("Ticket number is required")

        booking = await self._find_booking(ticket_number)
        if booking is None:
            raise OrderItemsError("Booking not found for this ticket number", status_code=404)

        result = await self.db.execute(
            select(OrderRecord)
            .where(OrderRecord.booking_id == booking.booking_id)
            .order_by(OrderRecord.id)
        )
        return booking, list(result.scalars().all())

    async def update_order_items(self, request: OrderItemsRequest) -> tuple[Booking, OrderRecord]:
        """
        Apply an order-items change to a booking.

        Raises:
            OrderItemsError: On invalid input, unknown booking or lock contention
        """
        key = (request.ticket_number or request.booking_id or "").strip()
        if not key:
            raise OrderItemsError("Ticket number or booking ID is required")
        service_name = (request.service_name or "").strip()
        if not service_name:
            raise OrderItemsError("Service name is required for order items")

        booking = await self._find_booking(key)
        if booking is None:
            raise OrderItemsError("Booking not found for this ticket number", status_code=404)

        try:
            async with distributed_lock(self.redis, booking_lock_name(booking.booking_id)):
                return await self._do_update(booking.booking_id, service_name, request)
        except DistributedLockError:
            raise OrderItemsError(
                "Booking is being updated by someone else. Please try again.",
                status_code=409,
            )

    async def _do_update(
        self,
        booking_id: str,
        service_name: str,
        request: OrderItemsRequest,
    ) -> tuple[Booking, OrderRecord]:
        """Must run under the booking lock."""
        booking = await self._find_booking(booking_id, for_update=True)
        if booking is None:
            raise OrderItemsError("Booking not found for this ticket number", status_code=404)

        _, service_field, is_decoration = resolve_service_field(service_name)
        new_items = normalize_items(request.items, service_name, is_decoration or None)
        added_subtotal = sum_items(new_items)

        service_items = dict(booking.service_items or {})
        previous_items = normalize_items(service_items.get(service_field, []), service_name)
        previous_subtotal = sum_items(previous_items)

        remove_ids = {str(item_id).strip() for item_id in request.remove_item_ids if str(item_id).strip()}
        removed_items = [item for item in previous_items if item.identifier in remove_ids]
        removed_subtotal = sum_items(removed_items)
        kept_items = [item for item in previous_items if item.identifier not in remove_ids]

        explicit_clear = not request.items and not remove_ids
        updated_items = [] if explicit_clear else kept_items + new_items

        total_before = booking.total_amount or 0
        venue_before = booking.venue_payment or 0
        if explicit_clear:
            delta = -previous_subtotal
        else:
            delta = added_subtotal - removed_subtotal
        booking.total_amount = max(total_before + delta, 0)
        booking.venue_payment = max(venue_before + delta, 0)

        service_items[service_field] = _records(updated_items)
        booking.service_items = service_items
        if is_decoration and updated_items:
            booking.want_decor_items = "yes"

        completing = False
        if request.mark_paid:
            booking.payment_status = PaymentStatus.PAID
            if booking.status in (BookingStatus.CONFIRMED, BookingStatus.MANUAL):
                booking.status = BookingStatus.COMPLETED
                booking.completed_at = to_storage(now_ist())
                completing = True
        if request.payment_method:
            booking.venue_payment_method = request.payment_method

        totals_before = {"totalAmount": total_before, "venuePayment": venue_before}
        totals_after = {"totalAmount": booking.total_amount, "venuePayment": booking.venue_payment}

        if not updated_items:
            await self.db.execute(
                delete(OrderRecord).where(
                    OrderRecord.booking_id == booking.booking_id,
                    OrderRecord.service_field == service_field,
                )
            )
            cancelled_items = removed_items or previous_items
            record = OrderRecord(
                booking_id=booking.booking_id,
                ticket_number=booking.ticket_number,
                service_name=service_name,
                service_field=service_field,
                action_type="cancelled",
                event_type="cancellation",
                items=_records(cancelled_items),
                change_set={
                    "added": [],
                    "removed": _records(cancelled_items),
                    "addedSubtotal": 0,
                    "removedSubtotal": previous_subtotal,
                },
                totals_before=totals_before,
                totals_after=totals_after,
            )
        else:
            action_type = _action_type(explicit_clear, removed_items, new_items)
            record = OrderRecord(
                booking_id=booking.booking_id,
                ticket_number=booking.ticket_number,
                service_name=service_name,
                service_field=service_field,
                action_type=action_type,
                event_type="removal" if action_type == "remove" else "addition",
                items=_records(updated_items),
                change_set={
                    "added": _records(new_items),
                    "removed": _records(removed_items),
                    "addedSubtotal": added_subtotal,
                    "removedSubtotal": removed_subtotal,
                },
                totals_before=totals_before,
                totals_after=totals_after,
            )
        self.db.add(record)

        await self.db.commit()
        await self.db.refresh(booking)
        await self.db.refresh(record)
        logger.info(
            f"Order items {record.action_type} on {booking.booking_id} "
            f"[{service_field}]: total {total_before} -> {booking.total_amount}"
        )

        if completing:
            await self.exports.append_archive(ArchiveKind.COMPLETED, booking_record(booking))
            await self.counters.safe_increment("completed")
            await refresh_if_expired(self.db, booking, record)

        return booking, record
