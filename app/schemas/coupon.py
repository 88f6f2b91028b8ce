"""Coupon schemas."""

from datetime import datetime
from typing import Literal

from pydantic import Field, field_validator, model_validator

from app.schemas.common import BaseSchema


class CouponValidateRequest(BaseSchema):
    """Coupon code and the amount it would apply to."""

    coupon_code: str | None = None
    amount: float = Field(0, ge=0)

    @model_validator(mode="before")
    @classmethod
    def _accept_code(cls, data):
        if isinstance(data, dict) and "code" in data and not data.get("couponCode"):
            data = {**data, "couponCode": data["code"]}
        return data


class CouponSummary(BaseSchema):
    """Public coupon details."""

    coupon_code: str
    discount_type: str
    discount_value: float

    @field_validator("discount_type", mode="before")
    @classmethod
    def _enum_value(cls, value):
        return getattr(value, "value", value)


class CouponValidateResponse(BaseSchema):
    """Validated coupon with the computed discount."""

    success: bool = True
    discount_amount: float
    coupon: CouponSummary


class CouponCreate(BaseSchema):
    """Schema for creating a coupon."""

    coupon_code: str = Field(..., min_length=1, max_length=40)
    description: str = ""
    discount_type: Literal["percentage", "fixed"] = "percentage"
    discount_value: float = Field(..., ge=0)
    valid_date: datetime | None = None
    expire_date: datetime | None = None
    is_active: bool = True


class CouponUpdate(BaseSchema):
    """Schema for updating a coupon."""

    id: int
    coupon_code: str | None = Field(None, min_length=1, max_length=40)
    description: str | None = None
    discount_type: Literal["percentage", "fixed"] | None = None
    discount_value: float | None = Field(None, ge=0)
    valid_date: datetime | None = None
    expire_date: datetime | None = None
    is_active: bool | None = None


class CouponResponse(CouponSummary):
    """Full coupon for the admin list."""

    id: int
    description: str
    valid_date: datetime | None = None
    expire_date: datetime | None = None
    is_active: bool


class CouponListResponse(BaseSchema):
    """Admin coupon list."""

    success: bool = True
    coupons: list[CouponResponse]
    total: int
