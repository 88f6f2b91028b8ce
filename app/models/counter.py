"""Booking counters with per-period tallies."""

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base


class Counter(Base):
    """
    Named counter.

    Period tallies (today/week/month/year) are reset lazily whenever the
    matching ``last_reset_*`` key no longer equals the current period key.
    """

    __tablename__ = "counters"

    name: Mapped[str] = mapped_column(String(80), primary_key=True)
    today: Mapped[int] = mapped_column(Integer, default=0)
    week: Mapped[int] = mapped_column(Integer, default=0)
    month: Mapped[int] = mapped_column(Integer, default=0)
    year: Mapped[int] = mapped_column(Integer, default=0)
    total: Mapped[int] = mapped_column(Integer, default=0)
    last_reset_date: Mapped[str] = mapped_column(String(10), default="")
    last_reset_week: Mapped[str] = mapped_column(String(10), default="")
    last_reset_month: Mapped[str] = mapped_column(String(10), default="")
    last_reset_year: Mapped[str] = mapped_column(String(10), default="")
