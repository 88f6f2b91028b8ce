"""Order-items schemas."""

from typing import Any

from pydantic import Field

from app.schemas.common import BaseSchema


class OrderItemsRequest(BaseSchema):
    """Add, replace, remove or clear the items of one service on a booking."""

    ticket_number: str | None = None
    booking_id: str | None = None
    service_name: str | None = None
    items: list[Any] = Field(default_factory=list)
    remove_item_ids: list[Any] = Field(default_factory=list)
    mark_paid: bool = False
    payment_method: str | None = None
    performed_by: str | None = None


class OrderBookingSummary(BaseSchema):
    """Booking totals after an order-items change."""

    booking_id: str
    ticket_number: str
    name: str | None = None
    email: str | None = None
    phone: str | None = None
    theater_name: str | None = None
    date: str | None = None
    time: str | None = None
    occasion: str | None = None
    number_of_people: int | None = None
    total_amount: float
    advance_payment: float
    venue_payment: float
    payment_status: str
    status: str
    dynamic_service_items: dict[str, list[dict]] = Field(default_factory=dict)


class OrderRecordResponse(BaseSchema):
    """Stored order-items event."""

    id: int
    booking_id: str
    ticket_number: str | None = None
    service_name: str
    service_field: str
    action_type: str
    event_type: str
    items: list[dict] = Field(default_factory=list)
    change_set: dict = Field(default_factory=dict)
    totals_before: dict = Field(default_factory=dict)
    totals_after: dict = Field(default_factory=dict)


class OrderItemsLookupResponse(BaseSchema):
    """Response for reading a booking's items by ticket number."""

    success: bool = True
    booking: OrderBookingSummary
    orders: list[OrderRecordResponse] = Field(default_factory=list)


class OrderItemsUpdateResponse(BaseSchema):
    """Response for an order-items mutation."""

    success: bool = True
    message: str
    booking: OrderBookingSummary
    order: OrderRecordResponse | None = None
