"""Customer cancellation API endpoint."""

from fastapi import APIRouter, BackgroundTasks, HTTPException

from app.api.dependencies import CancellationServiceDep
from app.schemas.booking import CancelBookingRequest, CancelBookingResponse
from app.services.cancellation_service import CancellationError
from app.services.email_service import send_booking_cancelled

router = APIRouter()


@router.post(
    "/cancel-booking",
    response_model=CancelBookingResponse,
    summary="Cancel booking",
)
async def cancel_booking(
    request: CancelBookingRequest,
    cancellation_service: CancellationServiceDep,
    background_tasks: BackgroundTasks,
) -> CancelBookingResponse:
    """
    Cancel a booking for its customer.

    A quarter of the total is refunded when more than 72 hours remain
    before the slot.
    """
    try:
        record, refund = await cancellation_service.cancel_booking(request)
    except CancellationError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    background_tasks.add_task(send_booking_cancelled, record)

    return CancelBookingResponse(
        message="Booking cancelled successfully",
        booking_id=record["bookingId"],
        refund_amount=refund.amount,
        refund_status=refund.status,
        refund_message=refund.message,
        hours_until_booking=round(refund.hours_until_booking),
    )
