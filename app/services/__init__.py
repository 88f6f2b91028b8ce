"""Services package."""

from app.services.booking_service import BookingService
from app.services.cancellation_service import CancellationService
from app.services.catalog_service import CatalogService
from app.services.counter_service import CounterService
from app.services.coupon_service import CouponService
from app.services.invoice_service import InvoiceService
from app.services.order_items_service import OrderItemsService
from app.services.pricing_service import PricingService
from app.services.slot_service import SlotService

__all__ = [
    "BookingService",
    "CancellationService",
    "CatalogService",
    "CounterService",
    "CouponService",
    "InvoiceService",
    "OrderItemsService",
    "PricingService",
    "SlotService",
]
