"""Booking API endpoints: creation, lookup and abandoned checkouts."""

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, status

from app.api.dependencies import BookingServiceDep
from app.models.booking import BookingStatus
from app.schemas.booking import (
    BookingCreate,
    BookingCreatedResponse,
    BookingEnvelope,
    BookingResponse,
    CleanupResponse,
    IncompleteBookingCreate,
    IncompleteBookingResponse,
    ReminderRequest,
)
from app.schemas.common import SuccessResponse
from app.services.booking_service import BookingError, BookingService
from app.services.email_service import send_booking_confirmation, send_incomplete_reminder
from app.services.export_service import booking_record

router = APIRouter()


async def _create(
    request: BookingCreate,
    booking_service: BookingService,
    background_tasks: BackgroundTasks,
    labelled: bool,
    message: str,
) -> BookingCreatedResponse:
    try:
        booking = await booking_service.create_booking(request, labelled=labelled)
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    background_tasks.add_task(send_booking_confirmation, booking_record(booking))

    return BookingCreatedResponse(
        message=message,
        booking_id=booking.booking_id,
        booking=BookingResponse.model_validate(booking),
        booking_type=booking.booking_type,
    )


@router.post(
    "/booking",
    response_model=BookingCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create booking",
)
async def create_booking(
    request: BookingCreate,
    booking_service: BookingServiceDep,
    background_tasks: BackgroundTasks,
) -> BookingCreatedResponse:
    """
    Create a customer or staff booking.

    The confirmation email is sent after the response.
    """
    return await _create(
        request, booking_service, background_tasks,
        labelled=False, message="Booking completed successfully!",
    )


@router.post(
    "/new-booking",
    response_model=BookingCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create booking with labelled occasion fields",
)
async def create_labelled_booking(
    request: BookingCreate,
    booking_service: BookingServiceDep,
    background_tasks: BackgroundTasks,
) -> BookingCreatedResponse:
    """Create a booking, storing occasion field labels and defaulting the advance to 30%."""
    return await _create(
        request, booking_service, background_tasks,
        labelled=True, message="Booking completed successfully with dynamic fields!",
    )


@router.get(
    "/booking",
    response_model=BookingEnvelope,
    summary="Get booking",
)
async def get_booking(
    booking_service: BookingServiceDep,
    booking_id: str = Query(..., alias="bookingId"),
) -> BookingEnvelope:
    """Get a booking by booking id or ticket number."""
    booking = await booking_service.get_booking(booking_id)
    if booking is None or booking.status == BookingStatus.CANCELLED:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Booking not found",
        )
    return BookingEnvelope(booking=BookingResponse.model_validate(booking))


@router.post(
    "/incomplete-booking",
    response_model=IncompleteBookingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Save incomplete booking",
)
async def save_incomplete_booking(
    request: IncompleteBookingCreate,
    booking_service: BookingServiceDep,
) -> IncompleteBookingResponse:
    try:
        incomplete = await booking_service.create_incomplete(request)
    except BookingError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return IncompleteBookingResponse(
        message="Incomplete booking saved successfully!",
        booking_id=incomplete.booking_id,
        expires_at=incomplete.expires_at,
    )


@router.delete(
    "/incomplete-booking",
    response_model=CleanupResponse,
    summary="Remove expired incomplete bookings",
)
async def cleanup_incomplete_bookings(
    booking_service: BookingServiceDep,
) -> CleanupResponse:
    deleted = await booking_service.cleanup_expired_incomplete()
    return CleanupResponse(
        message=f"Deleted {deleted} expired incomplete bookings",
        deleted_count=deleted,
    )


@router.post(
    "/email/incomplete",
    response_model=SuccessResponse,
    summary="Send incomplete booking reminder",
)
async def send_reminder(
    request: ReminderRequest,
    booking_service: BookingServiceDep,
    background_tasks: BackgroundTasks,
) -> SuccessResponse:
    """Email the customer a reminder to finish an abandoned checkout."""
    if not request.booking_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Booking ID is required",
        )

    incomplete = await booking_service.get_incomplete(request.booking_id)
    if incomplete is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Incomplete booking not found",
        )

    background_tasks.add_task(
        send_incomplete_reminder,
        {
            "email": incomplete.email,
            "name": incomplete.name,
            "theaterName": incomplete.theater_name,
            "date": incomplete.date,
            "time": incomplete.time,
        },
    )
    return SuccessResponse(message="Reminder email queued")
