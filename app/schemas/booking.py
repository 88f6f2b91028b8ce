"""Booking schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import ConfigDict, Field, field_validator, model_serializer, model_validator

from app.schemas.common import BaseSchema

SERVICE_FIELD_PREFIX = "selected"

OccasionValue = str | int | float | bool | None


class ServiceItem(BaseSchema):
    """An add-on line item (food, decoration, cake, gift...)."""

    model_config = ConfigDict(extra="allow")

    id: str | None = None
    name: str
    price: float = Field(0, ge=0)
    quantity: int = Field(1, gt=0)
    service_name: str | None = None
    is_decoration: bool | None = None
    category_name: str | None = None
    pricing_mode: str | None = None
    variant_label: str | None = None
    half_price: float | None = None
    full_price: float | None = None
    small_price: float | None = None
    medium_price: float | None = None
    large_price: float | None = None
    veg_type: Literal["veg", "non-veg"] | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_aliases(cls, data: Any) -> Any:
        if isinstance(data, str):
            return {"name": data}
        if not isinstance(data, dict):
            return data
        data = dict(data)
        if not data.get("name") and data.get("title"):
            data["name"] = data["title"]
        if data.get("price") is None and data.get("amount") is not None:
            data["price"] = data["amount"]
        if not data.get("id"):
            data["id"] = data.get("itemId") or data.get("sku")
        if data.get("quantity") is None:
            data["quantity"] = 1
        veg_type = data.pop("veg_type", None) or data.get("vegType")
        if veg_type is not None:
            data["vegType"] = "non-veg" if str(veg_type).strip().lower() == "non-veg" else "veg"
        return data

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Item name is required")
        return value

    @property
    def identifier(self) -> str:
        """Key used to match removal requests."""
        return self.id or f"{self.name}-{_format_number(self.price)}"

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def sum_items(items: list[ServiceItem]) -> float:
    """Total of price * quantity."""
    return sum(item.subtotal for item in items)


class PricingData(BaseSchema):
    """Fee snapshot the client priced the booking with."""

    model_config = ConfigDict(extra="allow")

    slot_booking_fee: float | None = None
    extra_guest_fee: float | None = None
    convenience_fee: float | None = None
    decoration_fees: float | None = None


class BookingCreate(BaseSchema):
    """
    Booking request from the customer checkout or the staff manual form.

    Customer fields are optional here so the service can report every missing
    one in a single error. Any extra key starting with ``selected`` that holds
    a list is validated as a list of service items.
    """

    model_config = ConfigDict(extra="allow")

    name: str | None = None
    email: str | None = None
    phone: str | None = None
    theater_name: str | None = None
    date: str | None = None
    time: str | None = None
    occasion: str | None = None
    number_of_people: int = Field(2, ge=1)

    total_amount: float | None = None
    advance_payment: float | None = None
    slot_booking_fee: float | None = None
    venue_payment: float | None = None
    decoration_fee: float | None = None
    decoration_applied_fee: float | None = None
    want_decor_items: str | None = None
    extra_guests_count: int | None = None
    extra_guest_charges: float | None = None
    pricing_data: PricingData | None = None

    payment_status: str | None = None
    payment_method: str | None = None
    venue_payment_method: str | None = None
    coupon_code: str | None = None
    applied_coupon_code: str | None = None
    coupon_discount_type: str | None = None
    coupon_discount_value: float | None = None
    discount_amount: float | None = None
    coupon_discount: float | None = None
    special_discount: float | None = None
    admin_discount: float | None = None
    penalty_charges: float | None = None
    penalty_reason: str | None = None

    is_manual_booking: bool = False
    created_by: str | None = None
    staff_id: str | None = None
    staff_name: str | None = None
    notes: str | None = None

    occasion_data: dict[str, OccasionValue] = Field(default_factory=dict)
    incomplete_booking_id: str | None = None

    @model_validator(mode="after")
    def _validate_service_selections(self) -> "BookingCreate":
        extras = self.__pydantic_extra__ or {}
        for key, value in list(extras.items()):
            if key.startswith(SERVICE_FIELD_PREFIX) and isinstance(value, list):
                extras[key] = [ServiceItem.model_validate(item) for item in value]
        return self

    def service_selections(self) -> dict[str, list[ServiceItem]]:
        """Every ``selected*`` list sent with the request."""
        extras = self.__pydantic_extra__ or {}
        return {
            key: value
            for key, value in extras.items()
            if key.startswith(SERVICE_FIELD_PREFIX) and isinstance(value, list)
        }

    def extra_value(self, key: str) -> Any:
        """Raw value of a key not declared on the schema (legacy occasion fields)."""
        return (self.__pydantic_extra__ or {}).get(key)


class BookingResponse(BaseSchema):
    """
    Booking as returned to clients.

    Occasion fields and service lists are also flattened onto the top level,
    which is where the booking pages read them.
    """

    booking_id: str
    ticket_number: str
    name: str
    email: str
    phone: str
    theater_name: str
    date: str
    time: str
    occasion: str
    number_of_people: int
    status: str
    booking_type: str
    is_manual_booking: bool
    created_by: str
    staff_id: str | None = None
    staff_name: str | None = None
    notes: str | None = None
    payment_status: str
    payment_method: str | None = None
    venue_payment_method: str | None = None
    total_amount: float
    advance_payment: float
    slot_booking_fee: float
    venue_payment: float
    extra_guests_count: int
    extra_guest_charges: float
    decoration_applied_fee: float
    want_decor_items: str | None = None
    coupon_code: str | None = None
    coupon_discount_type: str | None = None
    coupon_discount_value: float | None = None
    discount_amount: float = 0
    special_discount: float = 0
    generic_discount: float = 0
    penalty_charges: float = 0
    penalty_reason: str | None = None
    pricing_data: dict = Field(default_factory=dict)
    occasion_fields: dict = Field(default_factory=dict)
    service_items: dict = Field(default_factory=dict)
    booking_at: datetime
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @field_validator("status", "payment_status", mode="before")
    @classmethod
    def _enum_value(cls, value: Any) -> Any:
        return getattr(value, "value", value)

    @model_serializer(mode="wrap")
    def _flatten(self, handler) -> dict:
        data = handler(self)
        for key, value in self.occasion_fields.items():
            data.setdefault(key, value)
        for key, value in self.service_items.items():
            data.setdefault(key, value)
        return data


class BookingCreatedResponse(BaseSchema):
    """Response for a newly created booking."""

    success: bool = True
    message: str
    booking_id: str
    booking: BookingResponse
    booking_type: str


class BookingEnvelope(BaseSchema):
    """Single booking wrapper."""

    success: bool = True
    booking: BookingResponse


class BookingListResponse(BaseSchema):
    """List of bookings."""

    success: bool = True
    bookings: list[BookingResponse]
    total: int


class ManualBookingListResponse(BaseSchema):
    """List of manual bookings."""

    success: bool = True
    manual_bookings: list[BookingResponse]
    total: int


class BookingUpdate(BaseSchema):
    """Admin partial update of a booking."""

    booking_id: str
    status: Literal["confirmed", "manual", "completed"] | None = None
    payment_status: str | None = None
    payment_method: str | None = None
    venue_payment_method: str | None = None
    notes: str | None = None
    total_amount: float | None = Field(None, ge=0)
    advance_payment: float | None = Field(None, ge=0)
    venue_payment: float | None = Field(None, ge=0)
    discount_amount: float | None = Field(None, ge=0)
    special_discount: float | None = Field(None, ge=0)
    penalty_charges: float | None = Field(None, ge=0)
    penalty_reason: str | None = None


class IncompleteBookingCreate(BaseSchema):
    """Checkout details captured before payment."""

    model_config = ConfigDict(extra="allow")

    email: str | None = None
    name: str | None = None
    phone: str | None = None
    theater_name: str | None = None
    date: str | None = None
    time: str | None = None
    occasion: str | None = None
    number_of_people: int = 2
    total_amount: float | None = None
    occasion_data: dict[str, OccasionValue] = Field(default_factory=dict)


class IncompleteBookingResponse(BaseSchema):
    """Saved incomplete booking."""

    success: bool = True
    message: str
    booking_id: str
    expires_at: datetime


class CancelBookingRequest(BaseSchema):
    """Customer cancellation request."""

    booking_id: str | None = None
    email: str | None = None
    cancel_reason: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_reason(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("reason") and not data.get("cancelReason"):
            data = {**data, "cancelReason": data["reason"]}
        return data


class CancelBookingResponse(BaseSchema):
    """Cancellation outcome with the refund decision."""

    success: bool = True
    message: str
    booking_id: str
    refund_amount: float
    refund_status: Literal["refundable", "non-refundable"]
    refund_message: str
    hours_until_booking: int


class CleanupResponse(BaseSchema):
    """Result of removing expired incomplete bookings."""

    success: bool = True
    message: str
    deleted_count: int


class ReminderRequest(BaseSchema):
    """Reminder email request for an abandoned checkout."""

    booking_id: str | None = None
