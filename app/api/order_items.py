"""Order items API endpoints."""

from fastapi import APIRouter, HTTPException, Query

from app.api.dependencies import OrderItemsServiceDep
from app.schemas.order import (
    OrderItemsLookupResponse,
    OrderItemsRequest,
    OrderItemsUpdateResponse,
    OrderRecordResponse,
)
from app.services.order_items_service import (
    PAID_MESSAGE,
    SAVED_MESSAGE,
    OrderItemsError,
    booking_summary,
)

router = APIRouter()


@router.get(
    "",
    response_model=OrderItemsLookupResponse,
    summary="Get order items",
)
async def get_order_items(
    order_service: OrderItemsServiceDep,
    ticket_number: str | None = Query(None, alias="ticketNumber"),
) -> OrderItemsLookupResponse:
    """Get a booking's service items and its order history by ticket number."""
    try:
        booking, records = await order_service.get_order_items(ticket_number)
    except OrderItemsError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return OrderItemsLookupResponse(
        booking=booking_summary(booking),
        orders=[OrderRecordResponse.model_validate(r) for r in records],
    )


@router.post(
    "",
    response_model=OrderItemsUpdateResponse,
    summary="Update order items",
)
async def update_order_items(
    request: OrderItemsRequest,
    order_service: OrderItemsServiceDep,
) -> OrderItemsUpdateResponse:
    """
    Add, remove or clear the items of one service on a booking.

    Totals are adjusted by the change and the booking can be marked paid
    in the same call. Uses a per-booking distributed lock.
    """
    try:
        booking, record = await order_service.update_order_items(request)
    except OrderItemsError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return OrderItemsUpdateResponse(
        message=PAID_MESSAGE if request.mark_paid else SAVED_MESSAGE,
        booking=booking_summary(booking),
        order=OrderRecordResponse.model_validate(record),
    )
