"""Booking models."""

import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Enum,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [member.value for member in enum_cls]


class BookingStatus(str, enum.Enum):
    """Booking status enum."""

    CONFIRMED = "confirmed"
    MANUAL = "manual"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, enum.Enum):
    """Payment status enum."""

    PAID = "paid"
    PARTIAL = "partial"
    UNPAID = "unpaid"


class ArchiveKind(str, enum.Enum):
    """Archive record kind."""

    COMPLETED = "completed"
    CANCELLED = "cancelled"


Money = Numeric(10, 2, asdecimal=False)


class Booking(Base, TimestampMixin):
    """A customer's reservation of a theater slot."""

    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    booking_id: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    ticket_number: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)

    # Customer
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str] = mapped_column(String(40), nullable=False)

    # Slot
    theater_name: Mapped[str] = mapped_column(String(120), nullable=False)
    date: Mapped[str] = mapped_column(String(60), nullable=False)
    time: Mapped[str] = mapped_column(String(60), nullable=False)
    booking_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    expired_at: Mapped[datetime | None] = mapped_column(DateTime)
    occasion: Mapped[str] = mapped_column(String(120), nullable=False)
    number_of_people: Mapped[int] = mapped_column(Integer, default=2)

    # Lifecycle
    status: Mapped[BookingStatus] = mapped_column(
        Enum(BookingStatus, native_enum=False, length=20, values_callable=_enum_values),
        default=BookingStatus.CONFIRMED,
    )
    booking_type: Mapped[str] = mapped_column(String(20), default="Online")
    is_manual_booking: Mapped[bool] = mapped_column(Boolean, default=False)
    created_by: Mapped[str] = mapped_column(String(60), default="Customer")
    staff_id: Mapped[str | None] = mapped_column(String(60))
    staff_name: Mapped[str | None] = mapped_column(String(120))
    notes: Mapped[str | None] = mapped_column(Text)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime)

    # Payment
    payment_status: Mapped[PaymentStatus] = mapped_column(
        Enum(PaymentStatus, native_enum=False, length=20, values_callable=_enum_values),
        default=PaymentStatus.UNPAID,
    )
    payment_method: Mapped[str | None] = mapped_column(String(40))
    venue_payment_method: Mapped[str | None] = mapped_column(String(40))

    # Pricing
    total_amount: Mapped[float] = mapped_column(Money, default=0)
    advance_payment: Mapped[float] = mapped_column(Money, default=0)
    slot_booking_fee: Mapped[float] = mapped_column(Money, default=0)
    venue_payment: Mapped[float] = mapped_column(Money, default=0)
    extra_guests_count: Mapped[int] = mapped_column(Integer, default=0)
    extra_guest_charges: Mapped[float] = mapped_column(Money, default=0)
    decoration_applied_fee: Mapped[float] = mapped_column(Money, default=0)
    want_decor_items: Mapped[str | None] = mapped_column(String(10))
    coupon_code: Mapped[str | None] = mapped_column(String(40))
    coupon_discount_type: Mapped[str | None] = mapped_column(String(20))
    coupon_discount_value: Mapped[float | None] = mapped_column(Money)
    discount_amount: Mapped[float] = mapped_column(Money, default=0)
    special_discount: Mapped[float] = mapped_column(Money, default=0)
    generic_discount: Mapped[float] = mapped_column(Money, default=0)
    penalty_charges: Mapped[float] = mapped_column(Money, default=0)
    penalty_reason: Mapped[str | None] = mapped_column(String(255))

    # Structured payloads
    pricing_data: Mapped[dict] = mapped_column(JSON, default=dict)
    occasion_fields: Mapped[dict] = mapped_column(JSON, default=dict)
    service_items: Mapped[dict] = mapped_column(JSON, default=dict)

    __table_args__ = (
        Index("idx_booking_email", "email"),
        Index("idx_booking_status", "status"),
        Index("idx_booking_theater_date", "theater_name", "date"),
    )


class IncompleteBooking(Base):
    """A checkout the customer abandoned before paying."""

    __tablename__ = "incomplete_bookings"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    booking_id: Mapped[str] = mapped_column(String(20), unique=True, nullable=False)
    name: Mapped[str | None] = mapped_column(String(120))
    email: Mapped[str] = mapped_column(String(200), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(40))
    theater_name: Mapped[str | None] = mapped_column(String(120))
    date: Mapped[str | None] = mapped_column(String(60))
    time: Mapped[str | None] = mapped_column(String(60))
    occasion: Mapped[str | None] = mapped_column(String(120))
    number_of_people: Mapped[int] = mapped_column(Integer, default=2)
    total_amount: Mapped[float] = mapped_column(Money, default=0)
    occasion_fields: Mapped[dict] = mapped_column(JSON, default=dict)
    status: Mapped[str] = mapped_column(String(20), default="pending")
    booking_at: Mapped[datetime | None] = mapped_column(DateTime)
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )

    __table_args__ = (Index("idx_incomplete_expires", "expires_at"),)


class BookingArchive(Base):
    """Snapshot of a booking that left the live table (completed or cancelled)."""

    __tablename__ = "booking_archive"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    kind: Mapped[ArchiveKind] = mapped_column(
        Enum(ArchiveKind, native_enum=False, length=20, values_callable=_enum_values),
        nullable=False,
    )
    booking_id: Mapped[str] = mapped_column(String(40), nullable=False)
    email: Mapped[str | None] = mapped_column(String(200))
    record: Mapped[dict] = mapped_column(JSON, nullable=False)
    archived_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )

    __table_args__ = (
        Index("idx_archive_kind", "kind"),
        Index("idx_archive_booking_id", "booking_id"),
    )
