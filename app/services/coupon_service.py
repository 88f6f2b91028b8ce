"""Coupon validation and admin management."""

import logging
from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.pricing import Coupon, DiscountType
from app.schemas.coupon import CouponCreate, CouponUpdate
from app.services.pricing_service import round_amount
from app.timeutils import now_ist, to_storage

logger = logging.getLogger(__name__)


class CouponError(Exception):
    """Coupon operation error."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def compute_discount(coupon: Coupon, amount: float) -> float:
    """Discount for an amount, clamped to [0, amount]."""
    value = float(coupon.discount_value or 0)
    if coupon.discount_type == DiscountType.PERCENTAGE:
        discount = round_amount(amount * value / 100)
    else:
        discount = value
    return max(0.0, min(discount, amount))


def check_coupon_window(coupon: Coupon, now: datetime) -> None:
    """
    Raises:
        CouponError: If the coupon is inactive, not yet valid or expired
    """
    if not coupon.is_active:
        raise CouponError("Coupon is inactive")
    if coupon.valid_date and now < coupon.valid_date:
        raise CouponError("Coupon is not yet valid")
    if coupon.expire_date and now > coupon.expire_date:
        raise CouponError("Coupon has expired")


class CouponService:
    """Service for coupon operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_code(self, code: str) -> Coupon | None:
        result = await self.db.execute(
            select(Coupon).where(func.upper(Coupon.coupon_code) == code.strip().upper())
        )
        return result.scalar_one_or_none()

    async def validate_coupon(self, code: str | None, amount: float) -> tuple[Coupon, float]:
        """
        Validate a coupon code against an amount.

        Returns:
            (coupon, discount amount)

        Raises:
            CouponError: If the code is missing, unknown or not currently usable
        """
        if not code or not code.strip():
            raise CouponError("Coupon code is required")

        coupon = await self.get_by_code(code)
        if coupon is None:
            raise CouponError("Invalid coupon code", status_code=404)

        check_coupon_window(coupon, to_storage(now_ist()))
        discount = compute_discount(coupon, amount)
        logger.info(f"Coupon {coupon.coupon_code} applied: {discount} off {amount}")
        return coupon, discount

    async def list_coupons(self) -> list[Coupon]:
        result = await self.db.execute(select(Coupon).order_by(Coupon.id.desc()))
        return list(result.scalars().all())

    async def create_coupon(self, data: CouponCreate) -> Coupon:
        coupon = Coupon(
            coupon_code=data.coupon_code.strip().upper(),
            description=data.description,
            discount_type=DiscountType(data.discount_type),
            discount_value=data.discount_value,
            valid_date=to_storage(data.valid_date) if data.valid_date else None,
            expire_date=to_storage(data.expire_date) if data.expire_date else None,
            is_active=data.is_active,
        )
        self.db.add(coupon)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise CouponError(f"Coupon code {coupon.coupon_code} already exists", status_code=409)
        await self.db.refresh(coupon)
        logger.info(f"Coupon created: {coupon.coupon_code}")
        return coupon

    async def update_coupon(self, data: CouponUpdate) -> Coupon:
        coupon = await self.db.get(Coupon, data.id)
        if coupon is None:
            raise CouponError("Coupon not found", status_code=404)

        changes = data.model_dump(exclude={"id"}, exclude_unset=True)
        for field, value in changes.items():
            if value is None:
                continue
            if field == "coupon_code":
                value = value.strip().upper()
            elif field == "discount_type":
                value = DiscountType(value)
            elif field in ("valid_date", "expire_date"):
                value = to_storage(value)
            setattr(coupon, field, value)

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise CouponError("Coupon code already exists", status_code=409)
        await self.db.refresh(coupon)
        logger.info(f"Coupon updated: {coupon.coupon_code}")
        return coupon

    async def delete_coupon(self, coupon_id: int) -> None:
        coupon = await self.db.get(Coupon, coupon_id)
        if coupon is None:
            raise CouponError("Coupon not found", status_code=404)
        await self.db.delete(coupon)
        await self.db.commit()
        logger.info(f"Coupon deleted: {coupon_id}")
