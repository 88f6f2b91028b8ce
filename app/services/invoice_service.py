"""
Invoice computation and rendering.

The invoice is computed once into an ``Invoice`` value from a booking record
(camelCase dict, as stored and archived) and then rendered either as HTML or
as a PDF with reportlab.
"""

import html
import io
import logging
import re
from dataclasses import dataclass, field

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.booking import ArchiveKind, Booking
from app.services.catalog_service import CatalogService
from app.services.export_service import ExportService, booking_record
from app.services.pricing_service import round_amount

settings = get_settings()
logger = logging.getLogger(__name__)

NO_OCCASION = {"no occasion", "none", "n/a", "not applicable", "not specified"}
DEFAULT_EXTRA_GUEST_FEE = 400
DEFAULT_CAPACITY_MIN = 2
SKIPPED_SERVICE_FIELDS = {"selectedMovies"}

_METHOD_LABELS = {"cash": "Cash", "upi": "UPI", "online": "Online"}


class InvoiceError(Exception):
    """Invoice generation error."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code


@dataclass
class InvoiceLine:
    description: str
    base_price: float
    quantity: int
    amount: float


@dataclass
class Invoice:
    invoice_no: str
    booking_id: str
    customer_name: str
    email: str
    phone: str
    theater_name: str
    date: str
    time: str
    occasion: str
    occasion_details: list[tuple[str, str]] = field(default_factory=list)
    lines: list[InvoiceLine] = field(default_factory=list)
    extra_guests_count: int = 0
    extra_guest_fee: float = 0
    extra_guest_charges: float = 0
    decoration_fee: float = 0
    penalty_charges: float = 0
    penalty_reason: str = ""
    special_discount: float = 0
    generic_discount: float = 0
    coupon_discount: float = 0
    coupon_description: str = ""
    total_before_adjustments: float = 0
    total_after_discount: float = 0
    slot_booking_amount: float = 0
    slot_payment_method: str = ""
    venue_payment: float = 0
    venue_payment_method: str = ""
    payment_status: str = ""

    @property
    def filename(self) -> str:
        return invoice_filename(self.customer_name)


def parse_amount(value) -> float:
    """Read an amount from a number or text such as "₹1,200"."""
    if isinstance(value, bool):
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        cleaned = re.sub(r"[^0-9.\-]", "", value)
        try:
            return float(cleaned) if cleaned else 0.0
        except ValueError:
            return 0.0
    return 0.0


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def _first_positive(*values) -> float:
    for value in values:
        amount = parse_amount(value)
        if amount > 0:
            return amount
    return 0.0


def format_inr(value: float) -> str:
    """Indian digit grouping: 123456 -> "1,23,456"."""
    number = int(round_amount(float(value or 0)))
    sign = "-" if number < 0 else ""
    digits = str(abs(number))
    if len(digits) <= 3:
        return f"{sign}{digits}"
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return f"{sign}{','.join(groups)},{tail}"


def resolve_occasion_name(value) -> str:
    name = str(value or "").strip()
    return "" if name.lower() in NO_OCCASION else name


def payment_method_label(value) -> str:
    method = str(value or "").strip().lower()
    if method == "online_payment":
        method = "online"
    return _METHOD_LABELS.get(method, "")


def invoice_filename(customer_name: str) -> str:
    cleaned = re.sub(r"[^a-zA-Z0-9\s]", "", customer_name or "Customer")
    cleaned = re.sub(r"\s+", "-", cleaned.strip()) or "Customer"
    return f"Invoice-FMT-{cleaned}.pdf"


def _normalize_text(value) -> str:
    return re.sub(r"\s+", " ", str(value or "").strip().lower())


def _label_from_key(key: str) -> str:
    label = re.sub(r"([A-Z])", r" \1", key).strip()
    return label[:1].upper() + label[1:]


def occasion_details(data: dict, field_labels: dict | None = None) -> list[tuple[str, str]]:
    """(label, value) pairs for the occasion fields stored on a booking."""
    field_labels = field_labels or {}
    details = []
    for key in [k for k in data if k.endswith("_label")]:
        base = key[: -len("_label")]
        raw_label = data.get(key)
        raw_value = _first(data.get(base), data.get(f"{base}_value"))
        if raw_label is None or raw_value is None or isinstance(raw_value, dict):
            continue
        expected = (field_labels.get(base) or _label_from_key(base)).strip()
        label_candidate = str(raw_label).strip()
        if isinstance(raw_value, list):
            value = ", ".join(str(v) for v in raw_value)
        else:
            value = str(raw_value).strip()
        # Legacy records stored label and value the wrong way round
        if (
            _normalize_text(expected)
            and _normalize_text(value) == _normalize_text(expected)
            and _normalize_text(label_candidate) != _normalize_text(expected)
        ):
            value = label_candidate
        if not expected or not value or _normalize_text(value) == _normalize_text(expected):
            continue
        details.append((expected, value))

    if details:
        return details

    for key, raw_value in (data.get("occasionData") or {}).items():
        if raw_value is None or isinstance(raw_value, dict):
            continue
        value = ", ".join(map(str, raw_value)) if isinstance(raw_value, list) else str(raw_value).strip()
        label = (field_labels.get(key) or _label_from_key(key)).strip()
        if value and label and _normalize_text(value) != _normalize_text(label):
            details.append((label, value))
    return details


def _service_label(field_name: str) -> str:
    raw = re.sub(r"^selected", "", field_name, flags=re.IGNORECASE)
    cleaned = re.sub(r"Items?$", "", raw, flags=re.IGNORECASE).replace("_", " ").strip()
    return cleaned[:1].upper() + cleaned[1:] if cleaned else "Item"


def item_lines(data: dict) -> list[InvoiceLine]:
    lines = []
    for key, value in data.items():
        if not key.startswith("selected") or key in SKIPPED_SERVICE_FIELDS:
            continue
        if not isinstance(value, list):
            continue
        label = _service_label(key)
        for item in value:
            if not isinstance(item, dict):
                continue
            name = item.get("name") or item.get("title") or "Item"
            price = parse_amount(item.get("price"))
            quantity = int(parse_amount(item.get("quantity")) or 1)
            lines.append(InvoiceLine(f"{label} - {name}", price, quantity, price * quantity))
    return lines


def coupon_description(data: dict) -> str:
    code = data.get("appliedCouponCode") or data.get("couponCode") or ""
    discount_type = data.get("couponDiscountType") or ""
    value = data.get("couponDiscountValue")
    if not code:
        return ""
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        shown = int(value) if float(value).is_integer() else value
        if discount_type == "percentage":
            return f"{code} ({shown}%)"
        if discount_type:
            return f"{code} (₹{shown})"
    return code


def _wants_decoration(data: dict) -> bool:
    if str(data.get("wantDecorItems") or "").strip().lower() == "yes":
        return True
    return bool(data.get("selectedDecorItems")) or bool(data.get("selectedExtraAddOns"))


def build_invoice(data: dict, occasion_meta: dict | None = None) -> Invoice:
    """Compute every amount shown on an invoice from a booking record."""
    pricing = data.get("pricingData") or {}
    people = int(parse_amount(data.get("numberOfPeople")) or DEFAULT_CAPACITY_MIN)

    decoration = _first_positive(data.get("decorationAppliedFee"), data.get("appliedDecorationFee"))
    if not decoration and _wants_decoration(data):
        decoration = _first_positive(data.get("decorationFee"), pricing.get("decorationFees"))

    extra_fee = parse_amount(_first(pricing.get("extraGuestFee"), DEFAULT_EXTRA_GUEST_FEE))
    extra_count = int(parse_amount(_first(data.get("extraGuestsCount"), max(0, people - DEFAULT_CAPACITY_MIN))))
    extra_charges = parse_amount(_first(data.get("extraGuestCharges"), extra_count * extra_fee))

    # Stored records carry 0.0 for unused discounts, so fall through on zero
    coupon_discount = _first_positive(data.get("discountAmount"), data.get("couponDiscount"))
    special_discount = _first_positive(
        data.get("specialDiscount"), pricing.get("specialDiscount"), data.get("adminDiscount")
    )
    generic_discount = _first_positive(data.get("Discount"), data.get("genericDiscount"), pricing.get("discount"))
    penalty = _first_positive(data.get("penaltyCharges"), data.get("penaltyCharge"))
    penalty_reason = str(data.get("penaltyReason") or "").strip()
    discounts = coupon_discount + special_discount + generic_discount

    items = item_lines(data)
    items_total = sum(line.amount for line in items)
    theater_base = parse_amount(pricing.get("theaterBasePrice"))

    provided_total = parse_amount(
        _first(data.get("totalAmountAfterDiscount"), data.get("totalAmount"), data.get("amount"), 0)
    )
    if provided_total > 0:
        total_after = provided_total
    else:
        total_after = max(theater_base + extra_charges + items_total + decoration + penalty - discounts, 0)
    if not theater_base:
        theater_base = max(total_after + discounts - penalty - extra_charges - items_total - decoration, 0)
    provided_subtotal = parse_amount(data.get("totalAmountBeforeDiscount"))
    total_before = provided_subtotal if provided_subtotal > 0 else total_after + discounts

    slot_fee = parse_amount(
        _first(data.get("slotBookingFee"), pricing.get("slotBookingFee"), data.get("advancePayment"), 0)
    )
    slot_amount = slot_fee if slot_fee > 0 else parse_amount(data.get("advancePayment"))
    invoice_total = slot_amount if slot_amount > 0 else total_after
    venue_payment = parse_amount(_first(data.get("venuePayment"), max(total_after - invoice_total, 0)))
    if venue_payment <= 0:
        venue_payment = max(total_after - slot_amount, 0)

    payment_status = str(data.get("paymentStatus") or "").lower()
    venue_method = payment_method_label(data.get("venuePaymentMethod")) if payment_status == "paid" else ""

    booking_id = str(data.get("bookingId") or data.get("id") or "")
    customer_name = str(data.get("name") or "").strip()
    lines = [InvoiceLine(str(data.get("theaterName") or "Theater"), theater_base, 1, theater_base)]
    if extra_count > 0:
        lines.append(InvoiceLine(f"Extra Guests ({extra_count} guests)", extra_fee, extra_count, extra_charges))
    lines.extend(items)
    if decoration > 0:
        lines.append(InvoiceLine("Decoration Applied Fee", decoration, 1, decoration))

    return Invoice(
        invoice_no=f"{booking_id} - {customer_name}" if customer_name else booking_id,
        booking_id=booking_id,
        customer_name=customer_name,
        email=str(data.get("email") or ""),
        phone=str(data.get("phone") or ""),
        theater_name=str(data.get("theaterName") or ""),
        date=str(data.get("date") or ""),
        time=str(data.get("time") or ""),
        occasion=resolve_occasion_name(data.get("occasion")),
        occasion_details=occasion_details(data, (occasion_meta or {}).get("fieldLabels")),
        lines=lines,
        extra_guests_count=extra_count,
        extra_guest_fee=extra_fee,
        extra_guest_charges=extra_charges,
        decoration_fee=decoration,
        penalty_charges=penalty,
        penalty_reason=penalty_reason,
        special_discount=special_discount,
        generic_discount=generic_discount,
        coupon_discount=coupon_discount,
        coupon_description=coupon_description(data),
        total_before_adjustments=total_before,
        total_after_discount=total_after,
        slot_booking_amount=slot_amount,
        slot_payment_method=payment_method_label(data.get("paymentMethod")),
        venue_payment=venue_payment,
        venue_payment_method=venue_method,
        payment_status=payment_status,
    )


def _summary_rows(invoice: Invoice, currency: str) -> list[tuple[str, str]]:
    rows = []
    if invoice.penalty_charges > 0:
        suffix = f" ({invoice.penalty_reason})" if invoice.penalty_reason else ""
        rows.append((f"Penalty Charges{suffix}", f"{currency}{format_inr(invoice.penalty_charges)}"))
    if invoice.special_discount > 0:
        rows.append(("Special Discount", f"-{format_inr(invoice.special_discount)}"))
    if invoice.generic_discount > 0:
        rows.append(("Discount", f"-{format_inr(invoice.generic_discount)}"))
    if invoice.coupon_discount > 0:
        label = "Coupon Discount"
        if invoice.coupon_description:
            label += f" ({invoice.coupon_description})"
        rows.append((label, f"-{format_inr(invoice.coupon_discount)}"))
    if invoice.total_before_adjustments != invoice.total_after_discount:
        rows.append(("Total After Discount", format_inr(invoice.total_after_discount)))
    slot_label = "Slot Booking Fee"
    if invoice.slot_payment_method:
        slot_label += f" ({invoice.slot_payment_method})"
    rows.append((slot_label, format_inr(invoice.slot_booking_amount)))
    payable_label = "Payable Amount"
    if invoice.venue_payment_method:
        payable_label += f" ({invoice.venue_payment_method})"
    rows.append((payable_label, format_inr(invoice.venue_payment)))
    rows.append(("Total", f"{currency}{format_inr(invoice.total_after_discount)}"))
    return rows


def render_invoice_html(invoice: Invoice) -> str:
    esc = html.escape
    line_rows = "".join(
        f"<tr><td>{esc(line.description)}</td><td>{format_inr(line.base_price)}</td>"
        f"<td>{line.quantity}</td><td>{format_inr(line.amount)}</td></tr>"
        for line in invoice.lines
    )
    summary_rows = "".join(
        f"<tr class='summary'><td colspan='3'><strong>{esc(label)}</strong></td>"
        f"<td><strong>{esc(value)}</strong></td></tr>"
        for label, value in _summary_rows(invoice, "₹")
    )
    details = "".join(
        f"<span class='occasion-tag'>{esc(value)}</span>" for _, value in invoice.occasion_details
    )
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>Invoice - {esc(settings.BUSINESS_NAME)}</title>
  <style>
    body {{ font-family: Arial, Helvetica, sans-serif; background: #f5eccf; padding: 20px; }}
    .invoice {{ max-width: 800px; margin: 0 auto; background: #f9f2d9; }}
    .header {{ background: #0f0f0f; color: #fff; padding: 24px 32px; }}
    .header h1 {{ margin: 0; font-size: 40px; }}
    .bill-to {{ background: #f07e4b; color: #fff; padding: 20px 28px; }}
    .occasion-tag {{ display: inline-block; background: #f2b365; border-radius: 999px; padding: 4px 12px; margin: 4px 4px 0 0; }}
    table {{ width: 100%; border-collapse: collapse; }}
    th {{ background: #0f0f0f; color: #fff; text-align: left; padding: 10px; }}
    td {{ padding: 10px; border-bottom: 1px solid #e8ddb6; }}
    .summary td {{ background: #fde68a; }}
  </style>
</head>
<body>
  <div class="invoice">
    <div class="header">
      <h1>Invoice</h1>
      <div>Invoice No: {esc(invoice.invoice_no)}</div>
      <div>{esc(settings.BUSINESS_NAME)}</div>
    </div>
    <div class="bill-to">
      <div>Bill To</div>
      <h2>{esc(invoice.customer_name)}</h2>
      <div>{esc(invoice.phone)}</div>
      <div>{esc(invoice.email)}</div>
    </div>
    <div class="occasion">
      <div>Occasion: {esc(invoice.occasion)}</div>
      <div>{details}</div>
      <div>Date &amp; Time: {esc(invoice.date or "TBD")}, {esc(invoice.time)}</div>
    </div>
    <table>
      <tr><th>Item Description</th><th>Base Price</th><th>Quantity</th><th>Price</th></tr>
      {line_rows}
      {summary_rows}
    </table>
  </div>
</body>
</html>
"""


def render_invoice_pdf(invoice: Invoice) -> bytes:
    """Render the invoice as an A4 PDF."""
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=15 * mm,
        leftMargin=15 * mm,
        topMargin=15 * mm,
        bottomMargin=15 * mm,
        title=f"Invoice - {invoice.invoice_no}",
    )
    dark = colors.HexColor("#0f0f0f")
    accent = colors.HexColor("#f07e4b")
    cream = colors.HexColor("#f9f2d9")

    styles = getSampleStyleSheet()
    title_style = ParagraphStyle("InvoiceTitle", parent=styles["Heading1"], fontSize=28, textColor=dark)
    label_style = ParagraphStyle("InvoiceLabel", parent=styles["Normal"], fontSize=9, textColor=colors.grey)
    body_style = ParagraphStyle("InvoiceBody", parent=styles["Normal"], fontSize=11, textColor=dark)
    heading_style = ParagraphStyle("InvoiceHeading", parent=styles["Heading2"], fontSize=16, textColor=accent)

    esc = html.escape
    story = [
        Paragraph("Invoice", title_style),
        Paragraph(f"Invoice No: {esc(invoice.invoice_no)}", body_style),
        Paragraph(esc(settings.BUSINESS_NAME), label_style),
        Spacer(1, 8 * mm),
        Paragraph("Bill To", label_style),
        Paragraph(esc(invoice.customer_name), heading_style),
        Paragraph(f"{esc(invoice.phone)}  {esc(invoice.email)}", body_style),
        Spacer(1, 4 * mm),
        Paragraph(f"Occasion: {esc(invoice.occasion)}", body_style),
    ]
    for label, value in invoice.occasion_details:
        story.append(Paragraph(f"{esc(label)}: {esc(value)}", body_style))
    story.append(Paragraph(f"Date &amp; Time: {esc(invoice.date or 'TBD')}, {esc(invoice.time)}", body_style))
    story.append(Spacer(1, 6 * mm))

    # Built-in PDF fonts have no rupee glyph
    rows = [["Item Description", "Base Price", "Quantity", "Price"]]
    for line in invoice.lines:
        rows.append([line.description, format_inr(line.base_price), str(line.quantity), format_inr(line.amount)])
    first_summary = len(rows)
    for label, value in _summary_rows(invoice, "Rs. "):
        rows.append([label, "", "", value])

    table = Table(rows, colWidths=[90 * mm, 30 * mm, 25 * mm, 35 * mm], repeatRows=1)
    table.setStyle(
        TableStyle(
            [
                ("BACKGROUND", (0, 0), (-1, 0), dark),
                ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
                ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
                ("BACKGROUND", (0, 1), (-1, first_summary - 1), cream),
                ("FONTNAME", (0, first_summary), (-1, -1), "Helvetica-Bold"),
                ("SPAN", (0, first_summary), (2, first_summary)),
                ("LINEBELOW", (0, 0), (-1, -1), 0.5, colors.HexColor("#e8ddb6")),
                ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
                ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
                ("TOPPADDING", (0, 0), (-1, -1), 6),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
            ]
        )
    )
    story.append(table)

    doc.build(story)
    return buffer.getvalue()


def enrich_item_prices(data: dict, price_index: dict[str, float]) -> dict:
    """Fill zero prices from the service catalog, matching by id then name."""
    if not price_index:
        return data
    enriched = dict(data)
    for key, value in data.items():
        if not key.startswith("selected") or not isinstance(value, list):
            continue
        fixed = []
        for item in value:
            if not isinstance(item, dict):
                fixed.append(item)
                continue
            item = dict(item)
            if not parse_amount(item.get("price")) > 0:
                id_key = str(item.get("id") or item.get("itemId") or "").lower()
                name_key = str(item.get("name") or item.get("title") or "").strip().lower()
                if id_key and f"id:{id_key}" in price_index:
                    item["price"] = price_index[f"id:{id_key}"]
                elif name_key and f"name:{name_key}" in price_index:
                    item["price"] = price_index[f"name:{name_key}"]
                else:
                    item["price"] = 0
            if not parse_amount(item.get("quantity")) > 0:
                item["quantity"] = 1
            fixed.append(item)
        enriched[key] = fixed
    return enriched


class InvoiceService:
    """Service for building invoices from live or archived bookings."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.catalog = CatalogService(db)
        self.exports = ExportService(db)

    async def _occasion_meta(self, occasion_name: str | None) -> dict | None:
        occasion = await self.catalog.get_occasion_by_name(occasion_name)
        if occasion is None:
            return None
        return {
            "fieldLabels": occasion.field_labels or {},
            "requiredFields": occasion.required_fields or [],
        }

    async def invoice_for_record(self, data: dict) -> Invoice:
        enriched = enrich_item_prices(data, await self.catalog.service_price_index())
        return build_invoice(enriched, await self._occasion_meta(data.get("occasion")))

    async def invoice_for_booking(self, booking_id: str | None) -> Invoice:
        """
        Invoice for a live booking, falling back to the completed archive.

        Raises:
            InvoiceError: If the id is missing or the booking is unknown
        """
        booking_id = (booking_id or "").strip()
        if not booking_id:
            raise InvoiceError("Booking ID is required")

        result = await self.db.execute(
            select(Booking).where(or_(Booking.booking_id == booking_id, Booking.ticket_number == booking_id))
        )
        booking = result.scalars().first()
        if booking is not None:
            record = booking_record(booking)
        else:
            record = await self.exports.find_archived(ArchiveKind.COMPLETED, booking_id)
            if record is None:
                raise InvoiceError("Booking not found", status_code=404)
            logger.info(f"Invoice for {booking_id} built from the completed archive")
        return await self.invoice_for_record(record)

    async def invoice_for_payload(self, data: dict | None) -> Invoice:
        if not data or not (data.get("id") or data.get("bookingId")):
            raise InvoiceError("Booking data is required")
        return await self.invoice_for_record(data)
