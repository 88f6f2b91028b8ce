"""Catalog service: theaters, occasions, service items and site settings."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.catalog import Occasion, ServiceCatalog, SystemSettings, Theater
from app.schemas.catalog import (
    OccasionCreate,
    OccasionUpdate,
    ServiceCreate,
    ServiceUpdate,
    SystemSettingsUpdate,
    TheaterCreate,
    TheaterUpdate,
)

logger = logging.getLogger(__name__)


class CatalogError(Exception):
    """Catalog operation error."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


def theater_to_dict(theater: Theater) -> dict:
    return {
        "id": theater.id,
        "name": theater.name,
        "type": theater.type,
        "price": theater.price or 0,
        "capacity": {"min": theater.capacity_min, "max": theater.capacity_max},
        "timeSlots": theater.time_slots or [],
        "features": theater.features or [],
        "description": theater.description,
        "location": theater.location,
        "displayOrder": theater.display_order,
        "isActive": theater.is_active,
    }


def _theater_values(data: TheaterCreate | TheaterUpdate) -> dict:
    values = data.model_dump(exclude={"id", "capacity", "time_slots"}, exclude_unset=True)
    if data.capacity is not None:
        values["capacity_min"] = data.capacity.min
        values["capacity_max"] = data.capacity.max
    if data.time_slots is not None:
        values["time_slots"] = [
            {
                **slot.model_dump(by_alias=True),
                "slotId": slot.slot_id or f"SLOT-{slot.start_time}",
            }
            for slot in data.time_slots
        ]
    return values


class CatalogService:
    """Service for catalog operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _commit(self, conflict_message: str) -> None:
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise CatalogError(conflict_message, status_code=409)

    # Theaters

    async def list_theaters(self, active_only: bool = False) -> list[Theater]:
        query = select(Theater).order_by(Theater.display_order, Theater.id)
        if active_only:
            query = query.where(Theater.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def find_theater(self, name: str | None) -> Theater | None:
        """
        Match a theater by name.

        Tries an exact match first, then a match on the first word of either
        name, the way the booking pages abbreviate theater names.
        """
        if not name:
            return None
        theaters = await self.list_theaters()
        for theater in theaters:
            if theater.name == name:
                return theater
        lowered = name.lower()
        first_word = lowered.split(" ")[0]
        for theater in theaters:
            theater_name = theater.name.lower()
            if first_word in theater_name or theater_name.split(" ")[0] in lowered:
                return theater
        return None

    async def create_theater(self, data: TheaterCreate) -> Theater:
        theater = Theater(**_theater_values(data))
        self.db.add(theater)
        await self._commit(f"Theater '{data.name}' already exists")
        await self.db.refresh(theater)
        logger.info(f"Theater created: {theater.name}")
        return theater

    async def update_theater(self, data: TheaterUpdate) -> Theater:
        theater = await self.db.get(Theater, data.id)
        if theater is None:
            raise CatalogError("Theater not found", status_code=404)
        for field, value in _theater_values(data).items():
            if value is not None:
                setattr(theater, field, value)
        await self._commit("Theater name already exists")
        await self.db.refresh(theater)
        return theater

    async def delete_theater(self, theater_id: int) -> None:
        theater = await self.db.get(Theater, theater_id)
        if theater is None:
            raise CatalogError("Theater not found", status_code=404)
        await self.db.delete(theater)
        await self.db.commit()
        logger.info(f"Theater deleted: {theater_id}")

    # Occasions

    async def list_occasions(self, active_only: bool = False) -> list[Occasion]:
        query = select(Occasion).order_by(Occasion.name)
        if active_only:
            query = query.where(Occasion.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_occasion_by_name(self, name: str | None) -> Occasion | None:
        if not name:
            return None
        result = await self.db.execute(select(Occasion).where(Occasion.name == name))
        return result.scalar_one_or_none()

    async def create_occasion(self, data: OccasionCreate) -> Occasion:
        occasion = Occasion(**data.model_dump())
        self.db.add(occasion)
        await self._commit(f"Occasion '{data.name}' already exists")
        await self.db.refresh(occasion)
        logger.info(f"Occasion created: {occasion.name}")
        return occasion

    async def update_occasion(self, data: OccasionUpdate) -> Occasion:
        occasion = await self.db.get(Occasion, data.id)
        if occasion is None:
            raise CatalogError("Occasion not found", status_code=404)
        for field, value in data.model_dump(exclude={"id"}, exclude_unset=True).items():
            if value is not None:
                setattr(occasion, field, value)
        await self._commit("Occasion name already exists")
        await self.db.refresh(occasion)
        return occasion

    async def delete_occasion(self, occasion_id: int) -> None:
        occasion = await self.db.get(Occasion, occasion_id)
        if occasion is None:
            raise CatalogError("Occasion not found", status_code=404)
        await self.db.delete(occasion)
        await self.db.commit()

    # Services

    async def list_services(self, active_only: bool = False) -> list[ServiceCatalog]:
        query = select(ServiceCatalog).order_by(ServiceCatalog.name)
        if active_only:
            query = query.where(ServiceCatalog.is_active.is_(True))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def create_service(self, data: ServiceCreate) -> ServiceCatalog:
        service = ServiceCatalog(**data.model_dump())
        self.db.add(service)
        await self._commit(f"Service '{data.name}' already exists")
        await self.db.refresh(service)
        return service

    async def update_service(self, data: ServiceUpdate) -> ServiceCatalog:
        service = await self.db.get(ServiceCatalog, data.id)
        if service is None:
            raise CatalogError("Service not found", status_code=404)
        for field, value in data.model_dump(exclude={"id"}, exclude_unset=True).items():
            if value is not None:
                setattr(service, field, value)
        await self._commit("Service name already exists")
        await self.db.refresh(service)
        return service

    async def delete_service(self, service_id: int) -> None:
        service = await self.db.get(ServiceCatalog, service_id)
        if service is None:
            raise CatalogError("Service not found", status_code=404)
        await self.db.delete(service)
        await self.db.commit()

    async def service_price_index(self) -> dict[str, float]:
        """Catalog prices keyed by ``id:<item id>`` and ``name:<item name>``."""
        index: dict[str, float] = {}
        for service in await self.list_services():
            for item in service.items or []:
                item_id = str(item.get("id") or item.get("itemId") or "").lower()
                item_name = str(item.get("name") or item.get("title") or "").strip().lower()
                price = float(item.get("price") or 0)
                if item_id:
                    index[f"id:{item_id}"] = price
                if item_name:
                    index[f"name:{item_name}"] = price
        return index

    # Settings

    async def get_settings(self) -> SystemSettings:
        settings_row = await self.db.get(SystemSettings, 1)
        if settings_row is None:
            settings_row = SystemSettings(id=1)
            self.db.add(settings_row)
            await self.db.commit()
            await self.db.refresh(settings_row)
        return settings_row

    async def update_settings(self, data: SystemSettingsUpdate) -> SystemSettings:
        settings_row = await self.get_settings()
        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(settings_row, field, value)
        await self.db.commit()
        await self.db.refresh(settings_row)
        logger.info("System settings updated")
        return settings_row

    async def contact_info(self) -> dict[str, str]:
        settings_row = await self.get_settings()
        return {
            "sitePhone": settings_row.site_phone or "",
            "siteWhatsapp": settings_row.site_whatsapp or "",
            "siteEmail": settings_row.site_email or "",
            "siteAddress": settings_row.site_address or "",
        }
