"""API main router."""

from fastapi import APIRouter

from app.api.admin import router as admin_router
from app.api.assistant import router as assistant_router
from app.api.bookings import router as bookings_router
from app.api.cancellations import router as cancellations_router
from app.api.catalog import router as catalog_router
from app.api.coupons import router as coupons_router
from app.api.invoices import router as invoices_router
from app.api.order_items import router as order_items_router

router = APIRouter()

router.include_router(bookings_router, tags=["Bookings"])
router.include_router(cancellations_router, tags=["Bookings"])
router.include_router(order_items_router, prefix="/order-items", tags=["Order Items"])
router.include_router(invoices_router, prefix="/generate-invoice", tags=["Invoices"])
router.include_router(coupons_router, prefix="/coupons", tags=["Coupons"])
router.include_router(assistant_router, prefix="/ai-assistant", tags=["AI Assistant"])
router.include_router(catalog_router, tags=["Catalog"])
router.include_router(admin_router, prefix="/admin", tags=["Admin"])
