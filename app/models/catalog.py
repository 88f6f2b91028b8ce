"""Catalog models: theaters, occasions, services and site settings."""

from sqlalchemy import JSON, BigInteger, Boolean, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import Base, TimestampMixin


class Theater(Base, TimestampMixin):
    """A private screening room that can be booked per slot."""

    __tablename__ = "theaters"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    type: Mapped[str | None] = mapped_column(String(60))
    price: Mapped[float] = mapped_column(Numeric(10, 2, asdecimal=False), default=0)
    capacity_min: Mapped[int] = mapped_column(Integer, default=2)
    capacity_max: Mapped[int] = mapped_column(Integer, default=10)
    time_slots: Mapped[list] = mapped_column(JSON, default=list)
    features: Mapped[list] = mapped_column(JSON, default=list)
    description: Mapped[str | None] = mapped_column(Text)
    location: Mapped[str | None] = mapped_column(String(255))
    display_order: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class Occasion(Base, TimestampMixin):
    """An occasion with the extra form fields it asks the customer for."""

    __tablename__ = "occasions"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    category: Mapped[str | None] = mapped_column(String(60))
    required_fields: Mapped[list] = mapped_column(JSON, default=list)
    field_labels: Mapped[dict] = mapped_column(JSON, default=dict)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class ServiceCatalog(Base, TimestampMixin):
    """A service category (food, decoration, cakes...) and its priced items."""

    __tablename__ = "service_catalog"

    id: Mapped[int] = mapped_column(BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(120), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    items: Mapped[list] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)


class SystemSettings(Base, TimestampMixin):
    """Single-row site settings (contact details, chatbot memory)."""

    __tablename__ = "system_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, default=1)
    site_phone: Mapped[str | None] = mapped_column(String(40))
    site_whatsapp: Mapped[str | None] = mapped_column(String(40))
    site_email: Mapped[str | None] = mapped_column(String(200))
    site_address: Mapped[str | None] = mapped_column(String(255))
    chatbot_memory_json: Mapped[str | None] = mapped_column(Text)
