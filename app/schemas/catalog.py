"""Catalog schemas: theaters, occasions, services, pricing and site settings."""

from pydantic import Field

from app.schemas.common import BaseSchema


class TimeSlot(BaseSchema):
    """A bookable slot of a theater, in 24h clock."""

    slot_id: str | None = None
    start_time: str = Field(..., pattern=r"^\d{1,2}:\d{2}$")
    end_time: str = Field(..., pattern=r"^\d{1,2}:\d{2}$")
    duration: int = 180
    is_active: bool = True


class Capacity(BaseSchema):
    """Guest limits."""

    min: int = 2
    max: int = 10


class TheaterCreate(BaseSchema):
    """Schema for creating a theater."""

    name: str = Field(..., min_length=1, max_length=120)
    type: str | None = None
    price: float = Field(0, ge=0)
    capacity: Capacity = Field(default_factory=Capacity)
    time_slots: list[TimeSlot] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    description: str | None = None
    location: str | None = None
    display_order: int = 0
    is_active: bool = True


class TheaterUpdate(BaseSchema):
    """Schema for updating a theater."""

    id: int
    name: str | None = Field(None, min_length=1, max_length=120)
    type: str | None = None
    price: float | None = Field(None, ge=0)
    capacity: Capacity | None = None
    time_slots: list[TimeSlot] | None = None
    features: list[str] | None = None
    description: str | None = None
    location: str | None = None
    display_order: int | None = None
    is_active: bool | None = None


class TheaterResponse(BaseSchema):
    """Theater as shown to clients."""

    id: int
    name: str
    type: str | None = None
    price: float
    capacity: Capacity
    time_slots: list[dict]
    features: list[str]
    description: str | None = None
    location: str | None = None
    display_order: int
    is_active: bool


class OccasionCreate(BaseSchema):
    """Schema for creating an occasion."""

    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    category: str | None = None
    required_fields: list[str] = Field(default_factory=list)
    field_labels: dict[str, str] = Field(default_factory=dict)
    is_active: bool = True


class OccasionUpdate(BaseSchema):
    """Schema for updating an occasion."""

    id: int
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = None
    category: str | None = None
    required_fields: list[str] | None = None
    field_labels: dict[str, str] | None = None
    is_active: bool | None = None


class OccasionResponse(BaseSchema):
    """Occasion with its dynamic form fields."""

    id: int
    name: str
    description: str | None = None
    category: str | None = None
    required_fields: list[str]
    field_labels: dict[str, str]
    is_active: bool


class ServiceCreate(BaseSchema):
    """Schema for creating a service category."""

    name: str = Field(..., min_length=1, max_length=120)
    description: str | None = None
    items: list[dict] = Field(default_factory=list)
    is_active: bool = True


class ServiceUpdate(BaseSchema):
    """Schema for updating a service category."""

    id: int
    name: str | None = Field(None, min_length=1, max_length=120)
    description: str | None = None
    items: list[dict] | None = None
    is_active: bool | None = None


class ServiceResponse(BaseSchema):
    """Service category with priced items."""

    id: int
    name: str
    description: str | None = None
    items: list[dict]
    is_active: bool


class PricingCreate(BaseSchema):
    """Schema for creating a pricing configuration."""

    name: str | None = None
    description: str = ""
    slot_booking_fee: float = Field(0, ge=0)
    extra_guest_fee: float = Field(0, ge=0)
    convenience_fee: float = Field(0, ge=0)
    decoration_fees: float = Field(0, ge=0)
    is_active: bool = True


class PricingUpdate(BaseSchema):
    """Schema for updating a pricing configuration."""

    id: int | None = None
    name: str | None = None
    description: str | None = None
    slot_booking_fee: float | None = Field(None, ge=0)
    extra_guest_fee: float | None = Field(None, ge=0)
    convenience_fee: float | None = Field(None, ge=0)
    decoration_fees: float | None = Field(None, ge=0)
    is_active: bool | None = None


class PricingResponse(BaseSchema):
    """Fee configuration."""

    id: int | None = None
    name: str
    slot_booking_fee: float
    extra_guest_fee: float
    convenience_fee: float
    decoration_fees: float


class SystemSettingsUpdate(BaseSchema):
    """Site settings update."""

    site_phone: str | None = None
    site_whatsapp: str | None = None
    site_email: str | None = None
    site_address: str | None = None
    chatbot_memory_json: str | None = None


class SystemSettingsResponse(BaseSchema):
    """Site settings."""

    site_phone: str | None = None
    site_whatsapp: str | None = None
    site_email: str | None = None
    site_address: str | None = None
    chatbot_memory_json: str | None = None


class PricingEnvelope(BaseSchema):
    success: bool = True
    pricing: PricingResponse
    source: str = "database"


class PricingListResponse(BaseSchema):
    success: bool = True
    pricing: list[PricingResponse]


class TheaterListResponse(BaseSchema):
    success: bool = True
    theaters: list[TheaterResponse]
    total: int


class TheaterEnvelope(BaseSchema):
    success: bool = True
    theater: TheaterResponse


class OccasionListResponse(BaseSchema):
    success: bool = True
    occasions: list[OccasionResponse]
    total: int


class OccasionEnvelope(BaseSchema):
    success: bool = True
    occasion: OccasionResponse


class ServiceListResponse(BaseSchema):
    success: bool = True
    services: list[ServiceResponse]
    total: int


class ServiceEnvelope(BaseSchema):
    success: bool = True
    service: ServiceResponse


class SystemSettingsEnvelope(BaseSchema):
    success: bool = True
    settings: SystemSettingsResponse
