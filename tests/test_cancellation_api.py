"""API tests for customer cancellations and the refund policy."""

from datetime import timedelta

from app.services.export_service import ExportService
from app.timeutils import now_ist
from tests.conftest import ADMIN_HEADERS


async def test_cancel_early_gets_quarter_refund(client, make_booking):
    created = await make_booking()

    response = await client.post(
        "/api/cancel-booking",
        json={"bookingId": created["bookingId"], "email": "ASHA@example.com", "reason": "Plans changed"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["message"] == "Booking cancelled successfully"
    assert data["refundAmount"] == 500
    assert data["refundStatus"] == "refundable"
    assert data["refundMessage"] == "Refund of ₹500 will be processed within 5-7 business days"
    assert data["hoursUntilBooking"] > 72
    assert isinstance(data["hoursUntilBooking"], int)

    lookup = await client.get("/api/booking", params={"bookingId": created["bookingId"]})
    assert lookup.status_code == 404

    exported = await client.get(
        "/api/admin/export-bookings-json", params={"type": "cancelled"}, headers=ADMIN_HEADERS
    )
    record = exported.json()["records"][0]
    assert record["cancelReason"] == "Plans changed"
    assert record["status"] == "cancelled"
    assert record["advancePayment"] == 500
    assert record["venuePayment"] == 1500


async def test_cancel_late_is_not_refunded(client, make_booking):
    tomorrow = (now_ist() + timedelta(days=1)).date().isoformat()
    created = await make_booking(date=tomorrow)

    response = await client.post(
        "/api/cancel-booking",
        json={"bookingId": created["bookingId"], "email": "asha@example.com"},
    )

    data = response.json()
    assert data["refundAmount"] == 0
    assert data["refundStatus"] == "non-refundable"
    assert data["refundMessage"] == "No refund applicable as per cancellation policy"


async def test_cancel_updates_counters(client, make_booking):
    created = await make_booking()
    await client.post(
        "/api/cancel-booking",
        json={"bookingId": created["bookingId"], "email": "asha@example.com"},
    )

    response = await client.get("/api/admin/counters", headers=ADMIN_HEADERS)

    counters = response.json()["counters"]
    assert counters["cancelled"]["total"] == 1
    assert counters["confirmed"]["today"] == 0
    assert counters["confirmed"]["total"] == 1


async def test_cancel_requires_matching_email(client, make_booking):
    created = await make_booking()

    response = await client.post(
        "/api/cancel-booking",
        json={"bookingId": created["bookingId"], "email": "someone@else.com"},
    )

    assert response.status_code == 403
    assert response.json()["error"] == "Email does not match booking"


async def test_cancel_requires_fields(client):
    response = await client.post("/api/cancel-booking", json={"bookingId": "FMT0001"})

    assert response.status_code == 400
    assert response.json()["error"] == "Missing required fields: bookingId and email"


async def test_cancel_unknown_booking(client):
    response = await client.post(
        "/api/cancel-booking",
        json={"bookingId": "FMT-2030-99", "email": "asha@example.com"},
    )

    assert response.status_code == 404


async def test_cancel_goes_through_when_archive_write_fails(client, make_booking, monkeypatch):
    created = await make_booking()

    async def archive_down(self, kind, record):
        await self.db.rollback()
        return False

    monkeypatch.setattr(ExportService, "append_archive", archive_down)

    response = await client.post(
        "/api/cancel-booking",
        json={"bookingId": created["bookingId"], "email": "asha@example.com"},
    )

    assert response.status_code == 200, response.text
    lookup = await client.get("/api/booking", params={"bookingId": created["bookingId"]})
    assert lookup.status_code == 404
