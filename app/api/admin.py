"""Admin API endpoints. Every route requires the X-Admin-Token header."""

from io import BytesIO

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse

from app.api.catalog import theater_response
from app.api.dependencies import (
    BookingServiceDep,
    CatalogServiceDep,
    CounterServiceDep,
    CouponServiceDep,
    ExportServiceDep,
    PricingServiceDep,
    require_admin,
)
from app.models.booking import BookingStatus
from app.schemas.admin import CountersResponse, DashboardStatsResponse, ExportRecordsResponse
from app.schemas.booking import (
    BookingEnvelope,
    BookingListResponse,
    BookingResponse,
    BookingUpdate,
    ManualBookingListResponse,
)
from app.schemas.catalog import (
    OccasionCreate,
    OccasionEnvelope,
    OccasionListResponse,
    OccasionResponse,
    OccasionUpdate,
    PricingCreate,
    PricingEnvelope,
    PricingListResponse,
    PricingResponse,
    PricingUpdate,
    ServiceCreate,
    ServiceEnvelope,
    ServiceListResponse,
    ServiceResponse,
    ServiceUpdate,
    SystemSettingsEnvelope,
    SystemSettingsResponse,
    SystemSettingsUpdate,
    TheaterCreate,
    TheaterEnvelope,
    TheaterListResponse,
    TheaterUpdate,
)
from app.schemas.common import SuccessResponse
from app.schemas.coupon import CouponCreate, CouponListResponse, CouponResponse, CouponUpdate
from app.services.booking_service import BookingError
from app.services.catalog_service import CatalogError
from app.services.coupon_service import CouponError
from app.services.export_service import XLSX_MEDIA_TYPE, normalize_export_type
from app.services.pricing_service import PricingError, pricing_to_dict

router = APIRouter(dependencies=[Depends(require_admin)])


# Bookings


@router.get("/bookings", response_model=BookingListResponse, summary="List bookings")
async def list_bookings(booking_service: BookingServiceDep) -> BookingListResponse:
    """All live bookings, newest first."""
    bookings = await booking_service.list_bookings()
    return BookingListResponse(
        bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=len(bookings),
    )


@router.get("/manual-bookings", response_model=ManualBookingListResponse, summary="List manual bookings")
async def list_manual_bookings(booking_service: BookingServiceDep) -> ManualBookingListResponse:
    bookings = await booking_service.list_bookings(status=BookingStatus.MANUAL)
    return ManualBookingListResponse(
        manual_bookings=[BookingResponse.model_validate(b) for b in bookings],
        total=len(bookings),
    )


@router.put("/update-booking", response_model=BookingEnvelope, summary="Update booking")
async def update_booking(
    request: BookingUpdate,
    booking_service: BookingServiceDep,
) -> BookingEnvelope:
    """Partially update a booking. Moving it to completed also archives it."""
    try:
        booking = await booking_service.update_booking(request)
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return BookingEnvelope(booking=BookingResponse.model_validate(booking))


@router.delete("/bookings/{booking_id}", response_model=SuccessResponse, summary="Delete booking")
async def delete_booking(booking_id: str, booking_service: BookingServiceDep) -> SuccessResponse:
    try:
        await booking_service.delete_booking(booking_id)
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return SuccessResponse(message=f"Booking {booking_id} deleted")


# Dashboard and counters


@router.get("/dashboard-stats", response_model=DashboardStatsResponse, summary="Dashboard statistics")
async def dashboard_stats(booking_service: BookingServiceDep) -> DashboardStatsResponse:
    return DashboardStatsResponse(stats=await booking_service.dashboard_stats())


@router.get("/counters", response_model=CountersResponse, summary="Booking counters")
async def get_counters(counter_service: CounterServiceDep) -> CountersResponse:
    return CountersResponse(
        counters=await counter_service.get_all(),
        staff_counters=await counter_service.get_staff_counters(),
    )


@router.post("/reset-counters", response_model=SuccessResponse, summary="Reset counters")
async def reset_counters(counter_service: CounterServiceDep) -> SuccessResponse:
    await counter_service.reset_all()
    return SuccessResponse(message="All counters reset to zero")


# Pricing


@router.get("/pricing", response_model=PricingListResponse, summary="List pricing")
async def list_pricing(pricing_service: PricingServiceDep) -> PricingListResponse:
    rows = await pricing_service.list_pricing()
    return PricingListResponse(
        pricing=[PricingResponse.model_validate(pricing_to_dict(p)) for p in rows]
    )


@router.post("/pricing", response_model=PricingEnvelope, status_code=201, summary="Create pricing")
async def create_pricing(request: PricingCreate, pricing_service: PricingServiceDep) -> PricingEnvelope:
    try:
        pricing = await pricing_service.create_pricing(request)
    except PricingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return PricingEnvelope(pricing=PricingResponse.model_validate(pricing_to_dict(pricing)))


@router.put("/pricing", response_model=PricingEnvelope, summary="Update pricing")
async def update_pricing(request: PricingUpdate, pricing_service: PricingServiceDep) -> PricingEnvelope:
    try:
        pricing = await pricing_service.update_pricing(request)
    except PricingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return PricingEnvelope(pricing=PricingResponse.model_validate(pricing_to_dict(pricing)))


@router.delete("/pricing", response_model=SuccessResponse, summary="Delete pricing")
async def delete_pricing(pricing_service: PricingServiceDep, id: int = Query(...)) -> SuccessResponse:
    try:
        await pricing_service.delete_pricing(id)
    except PricingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return SuccessResponse(message="Pricing deleted")


# Coupons


@router.get("/coupons", response_model=CouponListResponse, summary="List coupons")
async def list_coupons(coupon_service: CouponServiceDep) -> CouponListResponse:
    coupons = await coupon_service.list_coupons()
    return CouponListResponse(
        coupons=[CouponResponse.model_validate(c) for c in coupons],
        total=len(coupons),
    )


@router.post("/coupons", response_model=CouponResponse, status_code=201, summary="Create coupon")
async def create_coupon(request: CouponCreate, coupon_service: CouponServiceDep) -> CouponResponse:
    try:
        coupon = await coupon_service.create_coupon(request)
    except CouponError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return CouponResponse.model_validate(coupon)


@router.put("/coupons", response_model=CouponResponse, summary="Update coupon")
async def update_coupon(request: CouponUpdate, coupon_service: CouponServiceDep) -> CouponResponse:
    try:
        coupon = await coupon_service.update_coupon(request)
    except CouponError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return CouponResponse.model_validate(coupon)


@router.delete("/coupons", response_model=SuccessResponse, summary="Delete coupon")
async def delete_coupon(coupon_service: CouponServiceDep, id: int = Query(...)) -> SuccessResponse:
    try:
        await coupon_service.delete_coupon(id)
    except CouponError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return SuccessResponse(message="Coupon deleted")


# Theaters


@router.get("/theaters", response_model=TheaterListResponse, summary="List all theaters")
async def list_theaters(catalog_service: CatalogServiceDep) -> TheaterListResponse:
    theaters = await catalog_service.list_theaters()
    return TheaterListResponse(theaters=[theater_response(t) for t in theaters], total=len(theaters))


@router.post("/theaters", response_model=TheaterEnvelope, status_code=201, summary="Create theater")
async def create_theater(request: TheaterCreate, catalog_service: CatalogServiceDep) -> TheaterEnvelope:
    try:
        theater = await catalog_service.create_theater(request)
    except CatalogError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return TheaterEnvelope(theater=theater_response(theater))


@router.put("/theaters", response_model=TheaterEnvelope, summary="Update theater")
async def update_theater(request: TheaterUpdate, catalog_service: CatalogServiceDep) -> TheaterEnvelope:
    try:
        theater = await catalog_service.update_theater(request)
    except CatalogError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return TheaterEnvelope(theater=theater_response(theater))


@router.delete("/theaters", response_model=SuccessResponse, summary="Delete theater")
async def delete_theater(catalog_service: CatalogServiceDep, id: int = Query(...)) -> SuccessResponse:
    try:
        await catalog_service.delete_theater(id)
    except CatalogError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return SuccessResponse(message="Theater deleted")


# Occasions


@router.get("/occasions", response_model=OccasionListResponse, summary="List all occasions")
async def list_occasions(catalog_service: CatalogServiceDep) -> OccasionListResponse:
    occasions = await catalog_service.list_occasions()
    return OccasionListResponse(
        occasions=[OccasionResponse.model_validate(o) for o in occasions],
        total=len(occasions),
    )


@router.post("/occasions", response_model=OccasionEnvelope, status_code=201, summary="Create occasion")
async def create_occasion(request: OccasionCreate, catalog_service: CatalogServiceDep) -> OccasionEnvelope:
    try:
        occasion = await catalog_service.create_occasion(request)
    except CatalogError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return OccasionEnvelope(occasion=OccasionResponse.model_validate(occasion))


@router.put("/occasions", response_model=OccasionEnvelope, summary="Update occasion")
async def update_occasion(request: OccasionUpdate, catalog_service: CatalogServiceDep) -> OccasionEnvelope:
    try:
        occasion = await catalog_service.update_occasion(request)
    except CatalogError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return OccasionEnvelope(occasion=OccasionResponse.model_validate(occasion))


@router.delete("/occasions", response_model=SuccessResponse, summary="Delete occasion")
async def delete_occasion(catalog_service: CatalogServiceDep, id: int = Query(...)) -> SuccessResponse:
    try:
        await catalog_service.delete_occasion(id)
    except CatalogError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return SuccessResponse(message="Occasion deleted")


# Services


@router.get("/services", response_model=ServiceListResponse, summary="List all services")
async def list_services(catalog_service: CatalogServiceDep) -> ServiceListResponse:
    services = await catalog_service.list_services()
    return ServiceListResponse(
        services=[ServiceResponse.model_validate(s) for s in services],
        total=len(services),
    )


@router.post("/services", response_model=ServiceEnvelope, status_code=201, summary="Create service")
async def create_service(request: ServiceCreate, catalog_service: CatalogServiceDep) -> ServiceEnvelope:
    try:
        service = await catalog_service.create_service(request)
    except CatalogError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return ServiceEnvelope(service=ServiceResponse.model_validate(service))


@router.put("/services", response_model=ServiceEnvelope, summary="Update service")
async def update_service(request: ServiceUpdate, catalog_service: CatalogServiceDep) -> ServiceEnvelope:
    try:
        service = await catalog_service.update_service(request)
    except CatalogError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return ServiceEnvelope(service=ServiceResponse.model_validate(service))


@router.delete("/services", response_model=SuccessResponse, summary="Delete service")
async def delete_service(catalog_service: CatalogServiceDep, id: int = Query(...)) -> SuccessResponse:
    try:
        await catalog_service.delete_service(id)
    except CatalogError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return SuccessResponse(message="Service deleted")


# Settings


@router.get("/settings", response_model=SystemSettingsEnvelope, summary="Get site settings")
async def get_settings(catalog_service: CatalogServiceDep) -> SystemSettingsEnvelope:
    settings_row = await catalog_service.get_settings()
    return SystemSettingsEnvelope(settings=SystemSettingsResponse.model_validate(settings_row))


@router.put("/settings", response_model=SystemSettingsEnvelope, summary="Update site settings")
async def update_settings(
    request: SystemSettingsUpdate,
    catalog_service: CatalogServiceDep,
) -> SystemSettingsEnvelope:
    settings_row = await catalog_service.update_settings(request)
    return SystemSettingsEnvelope(settings=SystemSettingsResponse.model_validate(settings_row))


# Exports


@router.get("/export-bookings", summary="Export bookings as xlsx")
async def export_bookings(
    export_service: ExportServiceDep,
    type: str | None = Query(None),
) -> StreamingResponse:
    """Download completed, manual or cancelled bookings as an Excel workbook."""
    content, filename, _ = await export_service.export_workbook(type)
    return StreamingResponse(
        BytesIO(content),
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/export-bookings-json", response_model=ExportRecordsResponse, summary="Export bookings as JSON")
async def export_bookings_json(
    export_service: ExportServiceDep,
    type: str | None = Query(None),
) -> ExportRecordsResponse:
    export_type = normalize_export_type(type)
    records = await export_service.export_records(export_type)
    return ExportRecordsResponse(type=export_type, count=len(records), records=records)
