"""Order records: history of service items added to or removed from a booking."""

from datetime import datetime

from sqlalchemy import JSON, BigInteger, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class OrderRecord(Base):
    """One order-items mutation applied to a booking."""

    __tablename__ = "order_records"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    booking_id: Mapped[str] = mapped_column(String(40), nullable=False)
    ticket_number: Mapped[str | None] = mapped_column(String(20))
    service_name: Mapped[str] = mapped_column(String(120), nullable=False)
    service_field: Mapped[str] = mapped_column(String(120), nullable=False)
    action_type: Mapped[str] = mapped_column(String(20), nullable=False)
    event_type: Mapped[str] = mapped_column(String(20), nullable=False)
    items: Mapped[list] = mapped_column(JSON, default=list)
    change_set: Mapped[dict] = mapped_column(JSON, default=dict)
    totals_before: Mapped[dict] = mapped_column(JSON, default=dict)
    totals_after: Mapped[dict] = mapped_column(JSON, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime, server_default=func.current_timestamp()
    )

    __table_args__ = (Index("idx_order_booking_id", "booking_id"),)
