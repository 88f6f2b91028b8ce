"""Pricing and coupon models."""

import enum
from datetime import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Enum, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin

Money = Numeric(10, 2, asdecimal=False)


class DiscountType(str, enum.Enum):
    """Coupon discount type."""

    PERCENTAGE = "percentage"
    FIXED = "fixed"


class Pricing(Base, TimestampMixin):
    """Fee configuration applied to new bookings."""

    __tablename__ = "pricing"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    slot_booking_fee: Mapped[float] = mapped_column(Money, default=0)
    extra_guest_fee: Mapped[float] = mapped_column(Money, default=0)
    convenience_fee: Mapped[float] = mapped_column(Money, default=0)
    decoration_fees: Mapped[float] = mapped_column(Money, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class Coupon(Base, TimestampMixin):
    """Discount coupon."""

    __tablename__ = "coupons"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    coupon_code: Mapped[str] = mapped_column(String(40), unique=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    discount_type: Mapped[DiscountType] = mapped_column(
        Enum(
            DiscountType,
            native_enum=False,
            length=20,
            values_callable=lambda e: [member.value for member in e],
        ),
        default=DiscountType.PERCENTAGE,
    )
    discount_value: Mapped[float] = mapped_column(Money, default=0)
    valid_date: Mapped[datetime | None] = mapped_column(DateTime)
    expire_date: Mapped[datetime | None] = mapped_column(DateTime)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
