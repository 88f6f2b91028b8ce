"""API dependencies."""

import secrets
from typing import Annotated

import redis.asyncio as redis
from fastapi import Depends, Header, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import get_db
from app.redis_client import get_redis
from app.services.ai_assistant import AssistantService
from app.services.booking_service import BookingService
from app.services.cancellation_service import CancellationService
from app.services.catalog_service import CatalogService
from app.services.counter_service import CounterService
from app.services.coupon_service import CouponService
from app.services.export_service import ExportService
from app.services.invoice_service import InvoiceService
from app.services.order_items_service import OrderItemsService
from app.services.pricing_service import PricingService
from app.services.slot_service import SlotService

settings = get_settings()

# Type aliases
DBSession = Annotated[AsyncSession, Depends(get_db)]
RedisClient = Annotated[redis.Redis, Depends(get_redis)]


async def require_admin(
    x_admin_token: Annotated[str | None, Header()] = None,
) -> str:
    """Check the admin token header."""
    if not x_admin_token or not secrets.compare_digest(x_admin_token, settings.ADMIN_API_TOKEN):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return x_admin_token


def get_booking_service(db: DBSession, redis_client: RedisClient) -> BookingService:
    """Get booking service."""
    return BookingService(db, redis_client)


def get_order_items_service(db: DBSession, redis_client: RedisClient) -> OrderItemsService:
    return OrderItemsService(db, redis_client)


def get_cancellation_service(db: DBSession, redis_client: RedisClient) -> CancellationService:
    return CancellationService(db, redis_client)


def get_counter_service(db: DBSession, redis_client: RedisClient) -> CounterService:
    return CounterService(db, redis_client)


def get_coupon_service(db: DBSession) -> CouponService:
    return CouponService(db)


def get_catalog_service(db: DBSession) -> CatalogService:
    return CatalogService(db)


def get_pricing_service(db: DBSession) -> PricingService:
    return PricingService(db)


def get_invoice_service(db: DBSession) -> InvoiceService:
    return InvoiceService(db)


def get_slot_service(db: DBSession) -> SlotService:
    return SlotService(db)


def get_export_service(db: DBSession) -> ExportService:
    return ExportService(db)


def get_assistant_service(db: DBSession) -> AssistantService:
    return AssistantService(db)


# Annotated dependencies
BookingServiceDep = Annotated[BookingService, Depends(get_booking_service)]
OrderItemsServiceDep = Annotated[OrderItemsService, Depends(get_order_items_service)]
CancellationServiceDep = Annotated[CancellationService, Depends(get_cancellation_service)]
CounterServiceDep = Annotated[CounterService, Depends(get_counter_service)]
CouponServiceDep = Annotated[CouponService, Depends(get_coupon_service)]
CatalogServiceDep = Annotated[CatalogService, Depends(get_catalog_service)]
PricingServiceDep = Annotated[PricingService, Depends(get_pricing_service)]
InvoiceServiceDep = Annotated[InvoiceService, Depends(get_invoice_service)]
SlotServiceDep = Annotated[SlotService, Depends(get_slot_service)]
ExportServiceDep = Annotated[ExportService, Depends(get_export_service)]
AssistantServiceDep = Annotated[AssistantService, Depends(get_assistant_service)]
