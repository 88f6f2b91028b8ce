"""Admin dashboard and slot availability schemas."""

from pydantic import Field

from app.schemas.common import BaseSchema


class PeriodStats(BaseSchema):
    """Booking tallies for each period."""

    today: int = 0
    this_week: int = 0
    this_month: int = 0
    this_year: int = 0
    total: int = 0

    def __add__(self, other: "PeriodStats") -> "PeriodStats":
        return PeriodStats(
            today=self.today + other.today,
            this_week=self.this_week + other.this_week,
            this_month=self.this_month + other.this_month,
            this_year=self.this_year + other.this_year,
            total=self.total + other.total,
        )


class ConfirmedToday(BaseSchema):
    confirmed: int
    completed: int


class DashboardStats(BaseSchema):
    """Counters shown on the admin dashboard."""

    online_bookings: PeriodStats
    manual_bookings: PeriodStats
    completed_bookings: PeriodStats
    cancelled_bookings: PeriodStats
    incomplete_bookings: PeriodStats
    all_bookings: PeriodStats
    active_halls: dict[str, int]
    confirmed_today: ConfirmedToday


class DashboardStatsResponse(BaseSchema):
    success: bool = True
    stats: DashboardStats


class SlotStatus(BaseSchema):
    """A theater slot with its booking state for one date."""

    slot_id: str
    start_time: str
    end_time: str
    time_range: str
    duration: int
    is_active: bool
    booking_status: str


class TimeSlotsResponse(BaseSchema):
    success: bool = True
    date: str | None = None
    theater: str | None = None
    time_slots: list[SlotStatus] = Field(default_factory=list)


class BookedSlotsResponse(BaseSchema):
    success: bool = True
    booked_time_slots: list[str]
    total_bookings: int


class ExportRecordsResponse(BaseSchema):
    """Archived or manual booking records for export."""

    success: bool = True
    type: str
    count: int
    records: list[dict]


class CountersResponse(BaseSchema):
    success: bool = True
    counters: dict[str, dict[str, int]]
    staff_counters: dict[str, int] = Field(default_factory=dict)
