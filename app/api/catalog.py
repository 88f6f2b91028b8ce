"""Public catalog and slot availability endpoints."""

from fastapi import APIRouter, HTTPException, Query

from app.api.dependencies import CatalogServiceDep, PricingServiceDep, SlotServiceDep
from app.models.catalog import Theater
from app.schemas.admin import BookedSlotsResponse, TimeSlotsResponse
from app.schemas.catalog import (
    OccasionListResponse,
    OccasionResponse,
    PricingEnvelope,
    PricingResponse,
    ServiceListResponse,
    ServiceResponse,
    TheaterListResponse,
    TheaterResponse,
)
from app.services.catalog_service import theater_to_dict
from app.services.slot_service import SlotError

router = APIRouter()


def theater_response(theater: Theater) -> TheaterResponse:
    return TheaterResponse.model_validate(theater_to_dict(theater))


@router.get("/pricing", response_model=PricingEnvelope, summary="Current pricing")
async def get_pricing(pricing_service: PricingServiceDep) -> PricingEnvelope:
    """Fees applied to new bookings, with a fallback when none is configured."""
    pricing, source = await pricing_service.get_current_pricing()
    return PricingEnvelope(pricing=PricingResponse.model_validate(pricing), source=source)


@router.get("/theaters", response_model=TheaterListResponse, summary="List theaters")
async def list_theaters(catalog_service: CatalogServiceDep) -> TheaterListResponse:
    theaters = await catalog_service.list_theaters(active_only=True)
    return TheaterListResponse(
        theaters=[theater_response(t) for t in theaters],
        total=len(theaters),
    )


@router.get("/occasions", response_model=OccasionListResponse, summary="List occasions")
async def list_occasions(catalog_service: CatalogServiceDep) -> OccasionListResponse:
    occasions = await catalog_service.list_occasions(active_only=True)
    return OccasionListResponse(
        occasions=[OccasionResponse.model_validate(o) for o in occasions],
        total=len(occasions),
    )


@router.get("/services", response_model=ServiceListResponse, summary="List services")
async def list_services(catalog_service: CatalogServiceDep) -> ServiceListResponse:
    services = await catalog_service.list_services(active_only=True)
    return ServiceListResponse(
        services=[ServiceResponse.model_validate(s) for s in services],
        total=len(services),
    )


@router.get("/booked-slots", response_model=BookedSlotsResponse, summary="Booked times for a date")
async def booked_slots(
    slot_service: SlotServiceDep,
    date: str | None = Query(None),
    theater: str | None = Query(None),
) -> BookedSlotsResponse:
    try:
        times = await slot_service.booked_slots(date, theater)
    except SlotError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return BookedSlotsResponse(booked_time_slots=times, total_bookings=len(times))


@router.get(
    "/time-slots-with-bookings",
    response_model=TimeSlotsResponse,
    summary="Theater slots with booking status",
)
async def time_slots_with_bookings(
    slot_service: SlotServiceDep,
    date: str | None = Query(None),
    theater: str | None = Query(None),
) -> TimeSlotsResponse:
    """Active slots of a theater, each marked available or booked on the date."""
    slots = await slot_service.time_slots_with_bookings(date, theater)
    return TimeSlotsResponse(date=date, theater=theater, time_slots=slots)
