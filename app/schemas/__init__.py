"""Pydantic schemas."""

from app.schemas.booking import (
    BookingCreate,
    BookingResponse,
    PricingData,
    ServiceItem,
)
from app.schemas.common import BaseSchema, ErrorResponse, SuccessResponse

__all__ = [
    "BaseSchema",
    "ErrorResponse",
    "SuccessResponse",
    "BookingCreate",
    "BookingResponse",
    "PricingData",
    "ServiceItem",
]
