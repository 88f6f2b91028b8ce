"""Booking archives and spreadsheet exports."""

import io
import logging
from datetime import datetime

from openpyxl import Workbook
from openpyxl.styles import Font
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import ArchiveKind, Booking, BookingArchive, BookingStatus
from app.schemas.booking import BookingResponse

logger = logging.getLogger(__name__)

EXPORT_TYPES = ("completed", "manual", "cancelled")

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"

_COMMON_COLUMNS = [
    ("Booking ID", "bookingId"),
    ("Name", "name"),
    ("Email", "email"),
    ("Phone", "phone"),
    ("Theater", "theaterName"),
    ("Date", "date"),
    ("Time", "time"),
    ("Occasion", "occasion"),
    ("Guests", "numberOfPeople"),
    ("Total Amount", "totalAmount"),
    ("Advance Payment", "advancePayment"),
    ("Venue Payment", "venuePayment"),
]

COLUMNS = {
    "completed": _COMMON_COLUMNS + [
        ("Payment Status", "paymentStatus"),
        ("Completed At", "completedAt"),
    ],
    "manual": _COMMON_COLUMNS + [
        ("Staff ID", "staffId"),
        ("Staff Name", "staffName"),
        ("Created By", "createdBy"),
        ("Notes", "notes"),
    ],
    "cancelled": _COMMON_COLUMNS + [
        ("Cancel Reason", "cancelReason"),
        ("Refund Amount", "refundAmount"),
        ("Refund Status", "refundStatus"),
        ("Cancelled At", "cancelledAt"),
    ],
}


def booking_record(booking: Booking) -> dict:
    """JSON snapshot of a booking in the client wire format."""
    return BookingResponse.model_validate(booking).model_dump(mode="json", by_alias=True)


def normalize_export_type(value: str | None) -> str:
    value = (value or "completed").lower()
    return value if value in EXPORT_TYPES else "completed"


def export_filename(export_type: str, today: datetime | None = None) -> str:
    stamp = (today or datetime.now()).strftime("%Y-%m-%d")
    return f"{export_type}_bookings_{stamp}.xlsx"


def build_workbook(export_type: str, records: list[dict]) -> bytes:
    """Render archive or booking records into an xlsx workbook."""
    columns = COLUMNS[export_type]
    workbook = Workbook()
    worksheet = workbook.active
    worksheet.title = f"{export_type.title()} Bookings"

    worksheet.append([header for header, _ in columns])
    for cell in worksheet[1]:
        cell.font = Font(bold=True)

    for record in records:
        row = []
        for _, key in columns:
            value = record.get(key, "")
            if isinstance(value, (dict, list)):
                value = str(value)
            row.append("" if value is None else value)
        worksheet.append(row)

    for index, (header, _) in enumerate(columns, start=1):
        worksheet.column_dimensions[worksheet.cell(row=1, column=index).column_letter].width = max(
            12, len(header) + 4
        )

    buffer = io.BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()


class ExportService:
    """Service for booking archives and exports."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def append_archive(self, kind: ArchiveKind, record: dict) -> bool:
        """
        Store a snapshot of a booking leaving the live table.

        Never raises: a failed archive write is logged and reported as False.
        """
        try:
            self.db.add(
                BookingArchive(
                    kind=kind,
                    booking_id=record.get("bookingId", ""),
                    email=record.get("email"),
                    record=record,
                )
            )
            await self.db.commit()
            return True
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Failed to archive {kind.value} booking {record.get('bookingId')}: {e}")
            return False

    async def list_archive(self, kind: ArchiveKind) -> list[dict]:
        result = await self.db.execute(
            select(BookingArchive)
            .where(BookingArchive.kind == kind)
            .order_by(BookingArchive.archived_at.desc(), BookingArchive.id.desc())
        )
        return [row.record for row in result.scalars().all()]

    async def find_archived(self, kind: ArchiveKind, booking_id: str) -> dict | None:
        result = await self.db.execute(
            select(BookingArchive)
            .where(BookingArchive.kind == kind, BookingArchive.booking_id == booking_id)
            .order_by(BookingArchive.id.desc())
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return row.record if row else None

    async def export_records(self, export_type: str) -> list[dict]:
        """Records behind an export type."""
        if export_type == "manual":
            result = await self.db.execute(
                select(Booking)
                .where(Booking.status == BookingStatus.MANUAL)
                .order_by(Booking.created_at.desc())
            )
            return [booking_record(b) for b in result.scalars().all()]
        kind = ArchiveKind.CANCELLED if export_type == "cancelled" else ArchiveKind.COMPLETED
        return await self.list_archive(kind)

    async def export_workbook(self, export_type: str) -> tuple[bytes, str, int]:
        """
        Build the xlsx export.

        Returns:
            (workbook bytes, filename, record count)
        """
        export_type = normalize_export_type(export_type)
        records = await self.export_records(export_type)
        content = build_workbook(export_type, records)
        filename = export_filename(export_type)
        logger.info(f"Exported {len(records)} {export_type} bookings to {filename}")
        return content, filename, len(records)
