"""Transactional email via Resend."""

import html
import logging

import resend

from app.config import get_settings

settings = get_settings()
logger = logging.getLogger(__name__)

resend.api_key = settings.RESEND_API_KEY


class EmailError(Exception):
    """Email delivery error."""

    pass


def _detail_rows(rows: list[tuple[str, object]]) -> str:
    return "".join(
        f"<tr><td style='padding:6px 12px;color:#888'>{html.escape(label)}</td>"
        f"<td style='padding:6px 12px;font-weight:600'>{html.escape(str(value))}</td></tr>"
        for label, value in rows
        if value not in (None, "")
    )


def _wrap(title: str, intro: str, rows: list[tuple[str, object]], footer: str = "") -> str:
    return (
        "<div style='font-family:Arial,Helvetica,sans-serif;max-width:600px;margin:auto'>"
        f"<h2 style='color:#e50914'>{html.escape(title)}</h2>"
        f"<p>{html.escape(intro)}</p>"
        f"<table style='border-collapse:collapse;width:100%'>{_detail_rows(rows)}</table>"
        f"<p style='color:#666;font-size:13px'>{html.escape(footer)}</p>"
        f"<p style='color:#999;font-size:12px'>{html.escape(settings.BUSINESS_NAME)}</p>"
        "</div>"
    )


async def send_email(to: str, subject: str, html_content: str) -> dict:
    """
    Send an email through Resend.

    Raises:
        EmailError: If Resend is not configured or rejects the message
    """
    if not settings.RESEND_API_KEY:
        raise EmailError("Email service not configured")

    try:
        response = resend.Emails.send(
            {
                "from": settings.EMAIL_FROM,
                "to": [to],
                "subject": subject,
                "html": html_content,
            }
        )
        logger.info(f"Email sent to {to}: {subject}")
        return response
    except Exception as e:
        raise EmailError(f"Failed to send email: {e}") from e


async def send_quietly(to: str, subject: str, html_content: str) -> bool:
    """Send an email, logging instead of raising. Returns True when delivered."""
    if not settings.RESEND_API_KEY:
        logger.info(f"Email disabled, skipped '{subject}' to {to}")
        return False
    try:
        await send_email(to, subject, html_content)
        return True
    except EmailError as e:
        logger.warning(f"Email to {to} failed: {e}")
        return False


async def send_booking_confirmation(booking: dict) -> bool:
    rows = [
        ("Booking ID", booking.get("bookingId")),
        ("Ticket", booking.get("ticketNumber")),
        ("Theater", booking.get("theaterName")),
        ("Date", booking.get("date")),
        ("Time", booking.get("time")),
        ("Occasion", booking.get("occasion")),
        ("Guests", booking.get("numberOfPeople")),
        ("Total", f"₹{booking.get('totalAmount', 0):,.0f}"),
        ("Paid in advance", f"₹{booking.get('advancePayment', 0):,.0f}"),
        ("Pay at venue", f"₹{booking.get('venuePayment', 0):,.0f}"),
    ]
    content = _wrap(
        "Your booking is confirmed",
        f"Hi {booking.get('name', '')}, thank you for booking with us.",
        rows,
        "Please arrive 10 minutes before your slot.",
    )
    return await send_quietly(
        booking["email"], f"Booking Confirmed - {booking.get('bookingId')}", content
    )


async def send_booking_cancelled(record: dict) -> bool:
    rows = [
        ("Booking ID", record.get("bookingId")),
        ("Theater", record.get("theaterName")),
        ("Date", record.get("date")),
        ("Time", record.get("time")),
        ("Reason", record.get("cancelReason")),
        ("Refund", f"₹{record.get('refundAmount', 0):,.0f} ({record.get('refundStatus')})"),
    ]
    content = _wrap(
        "Your booking has been cancelled",
        f"Hi {record.get('name', '')}, your booking was cancelled.",
        rows,
        "Refunds are processed within 5-7 business days.",
    )
    return await send_quietly(
        record["email"], f"Booking Cancelled - {record.get('bookingId')}", content
    )


async def send_incomplete_reminder(incomplete: dict) -> bool:
    rows = [
        ("Theater", incomplete.get("theaterName")),
        ("Date", incomplete.get("date")),
        ("Time", incomplete.get("time")),
    ]
    content = _wrap(
        "Your slot is still waiting",
        f"Hi {incomplete.get('name') or 'there'}, you did not finish your booking.",
        rows,
        f"Complete it at {settings.SITE_URL} before the slot is taken.",
    )
    return await send_quietly(incomplete["email"], "Complete your booking", content)
