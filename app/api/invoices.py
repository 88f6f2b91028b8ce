"""Invoice API endpoints."""

from typing import Any, Literal

from fastapi import APIRouter, Body, HTTPException, Query
from fastapi.responses import HTMLResponse, Response

from app.api.dependencies import InvoiceServiceDep
from app.services.invoice_service import (
    Invoice,
    InvoiceError,
    render_invoice_html,
    render_invoice_pdf,
)

router = APIRouter()


def _pdf_response(invoice: Invoice) -> Response:
    return Response(
        content=render_invoice_pdf(invoice),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{invoice.filename}"'},
    )


@router.get("", summary="Generate invoice for a booking")
async def generate_invoice(
    invoice_service: InvoiceServiceDep,
    booking_id: str | None = Query(None, alias="bookingId"),
    format: Literal["html", "pdf"] = Query("html"),
) -> Response:
    """Render the invoice of a live or completed booking as HTML or PDF."""
    try:
        invoice = await invoice_service.invoice_for_booking(booking_id)
    except InvoiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    if format == "pdf":
        return _pdf_response(invoice)
    return HTMLResponse(content=render_invoice_html(invoice))


@router.post("", summary="Generate invoice from booking data")
async def generate_invoice_from_payload(
    invoice_service: InvoiceServiceDep,
    data: dict[str, Any] | None = Body(None),
) -> Response:
    try:
        invoice = await invoice_service.invoice_for_payload(data)
    except InvoiceError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))
    return _pdf_response(invoice)
