"""SQLAlchemy models."""

from app.models.base import Base
from app.models.booking import (
    ArchiveKind,
    Booking,
    BookingArchive,
    BookingStatus,
    IncompleteBooking,
    PaymentStatus,
)
from app.models.catalog import Occasion, ServiceCatalog, SystemSettings, Theater
from app.models.counter import Counter
from app.models.order import OrderRecord
from app.models.pricing import Coupon, DiscountType, Pricing

__all__ = [
    "Base",
    "Booking",
    "BookingArchive",
    "BookingStatus",
    "ArchiveKind",
    "IncompleteBooking",
    "PaymentStatus",
    "Theater",
    "Occasion",
    "ServiceCatalog",
    "SystemSettings",
    "Counter",
    "OrderRecord",
    "Coupon",
    "DiscountType",
    "Pricing",
]
