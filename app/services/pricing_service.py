"""Pricing configuration and booking amount reconciliation."""

import logging
import math

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import PaymentStatus
from app.models.pricing import Pricing
from app.schemas.booking import BookingCreate
from app.schemas.catalog import PricingCreate, PricingUpdate

logger = logging.getLogger(__name__)

DEFAULT_PRICING = {
    "slotBookingFee": 1000,
    "extraGuestFee": 400,
    "convenienceFee": 50,
    "decorationFees": 0,
}

# Served by the public pricing endpoint when nothing is configured yet
FALLBACK_PRICING = {
    "slotBookingFee": 600,
    "extraGuestFee": 400,
    "convenienceFee": 0,
    "decorationFees": 750,
}

DEFAULT_CAPACITY_MIN = 2
DEFAULT_CAPACITY_MAX = 10

ADVANCE_RATIO = 0.30

_PAID = {"paid", "success", "successful", "completed", "fully_paid", "full"}
_PARTIAL = {"partial", "partially_paid", "advance", "advance_paid"}


class PricingError(Exception):
    """Pricing operation error."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def _first_defined(*values: float | None) -> float:
    for value in values:
        if value is not None:
            return float(value)
    return 0.0


def round_amount(value: float) -> float:
    """Round to whole rupees, halves up."""
    return float(math.floor(value + 0.5))


def default_advance(total: float) -> float:
    """Advance collected online when the client sends none."""
    return round_amount(total * ADVANCE_RATIO)


def resolve_slot_booking_fee(request: BookingCreate, advance_payment: float) -> float:
    pricing = request.pricing_data
    return _first_defined(
        request.slot_booking_fee,
        pricing.slot_booking_fee if pricing else None,
        advance_payment,
    )


def resolve_venue_payment(request: BookingCreate, total: float, slot_booking_fee: float) -> float:
    if request.venue_payment is not None:
        return float(request.venue_payment)
    return total - slot_booking_fee


def wants_decoration(request: BookingCreate) -> bool:
    """Decoration is charged when asked for or when decor/add-on items are selected."""
    if (request.want_decor_items or "").strip().lower() == "yes":
        return True
    selections = request.service_selections()
    return bool(selections.get("selectedDecorItems")) or bool(
        selections.get("selectedExtraAddOns")
    )


def resolve_decoration_fee(request: BookingCreate) -> float:
    pricing = request.pricing_data
    return _first_defined(
        request.decoration_fee,
        request.decoration_applied_fee,
        pricing.decoration_fees if pricing else None,
    )


def decoration_applied_fee(request: BookingCreate) -> float:
    return resolve_decoration_fee(request) if wants_decoration(request) else 0.0


def extra_guests(people: int, capacity_min: int = DEFAULT_CAPACITY_MIN) -> int:
    return max(0, people - capacity_min)


def normalize_payment_status(value: str | None) -> PaymentStatus:
    """Collapse the many payment status spellings into paid/partial/unpaid."""
    normalized = (value or "").strip().lower().replace(" ", "_").replace("-", "_")
    if normalized in _PAID:
        return PaymentStatus.PAID
    if normalized in _PARTIAL:
        return PaymentStatus.PARTIAL
    return PaymentStatus.UNPAID


def pricing_to_dict(pricing: Pricing) -> dict:
    return {
        "id": pricing.id,
        "name": pricing.name,
        "slotBookingFee": pricing.slot_booking_fee or 0,
        "extraGuestFee": pricing.extra_guest_fee or 0,
        "convenienceFee": pricing.convenience_fee or 0,
        "decorationFees": pricing.decoration_fees or 0,
    }


class PricingService:
    """Service for pricing configurations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_pricing(self) -> list[Pricing]:
        result = await self.db.execute(select(Pricing).order_by(Pricing.id))
        return list(result.scalars().all())

    async def get_current_pricing(self) -> tuple[dict, str]:
        """
        Pricing applied to new bookings.

        Returns:
            (pricing dict, source) where source is "database" or "fallback"
        """
        result = await self.db.execute(
            select(Pricing).where(Pricing.is_active.is_(True)).order_by(Pricing.id).limit(1)
        )
        pricing = result.scalar_one_or_none()
        if pricing is None:
            logger.warning("No active pricing configured, serving fallback pricing")
            return {"id": None, "name": "Pricing", **FALLBACK_PRICING}, "fallback"
        return pricing_to_dict(pricing), "database"

    async def create_pricing(self, data: PricingCreate) -> Pricing:
        if not data.name or not data.name.strip():
            raise PricingError("Pricing name is required")
        pricing = Pricing(
            name=data.name.strip(),
            description=data.description,
            slot_booking_fee=data.slot_booking_fee,
            extra_guest_fee=data.extra_guest_fee,
            convenience_fee=data.convenience_fee,
            decoration_fees=data.decoration_fees,
            is_active=data.is_active,
        )
        self.db.add(pricing)
        await self.db.commit()
        await self.db.refresh(pricing)
        logger.info(f"Pricing created: {pricing.id} ({pricing.name})")
        return pricing

    async def update_pricing(self, data: PricingUpdate) -> Pricing:
        if data.id is None:
            raise PricingError("Pricing ID is required for update")
        pricing = await self.db.get(Pricing, data.id)
        if pricing is None:
            raise PricingError("Pricing not found", status_code=404)

        for field, value in data.model_dump(exclude={"id"}, exclude_unset=True).items():
            if value is not None:
                setattr(pricing, field, value)

        await self.db.commit()
        await self.db.refresh(pricing)
        logger.info(f"Pricing updated: {pricing.id}")
        return pricing

    async def delete_pricing(self, pricing_id: int) -> None:
        pricing = await self.db.get(Pricing, pricing_id)
        if pricing is None:
            raise PricingError("Pricing not found", status_code=404)
        await self.db.delete(pricing)
        await self.db.commit()
        logger.info(f"Pricing deleted: {pricing_id}")
