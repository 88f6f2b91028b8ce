"""API tests for booking creation, lookup and abandoned checkouts."""

from sqlalchemy import select

from app.config import get_settings
from app.models.booking import ArchiveKind, BookingArchive, IncompleteBooking
from app.models.catalog import Occasion
from app.services.booking_service import BookingService
from app.services.counter_service import CounterService
from app.timeutils import now_ist
from tests.conftest import ADMIN_HEADERS, booking_payload


async def test_create_booking(client):
    response = await client.post("/api/booking", json=booking_payload())

    assert response.status_code == 201
    data = response.json()
    assert data["success"] is True
    assert data["message"] == "Booking completed successfully!"
    assert data["bookingId"] == f"FMT-{now_ist().year}-1"
    assert data["bookingType"] == "Online"

    booking = data["booking"]
    assert booking["ticketNumber"] == "FMT0001"
    assert booking["email"] == "asha@example.com"
    assert booking["status"] == "confirmed"
    assert booking["slotBookingFee"] == 600
    assert booking["venuePayment"] == 1400
    assert booking["extraGuestsCount"] == 2
    assert booking["extraGuestCharges"] == 800


async def test_booking_ids_are_sequential(client, make_booking):
    await make_booking()
    second = await make_booking(time="7:30 PM - 10:30 PM")

    assert second["booking"]["ticketNumber"] == "FMT0002"
    assert second["bookingId"].endswith("-2")


async def test_create_booking_reports_missing_fields(client):
    response = await client.post("/api/booking", json={"name": "Asha"})

    assert response.status_code == 400
    assert response.json() == {
        "success": False,
        "error": "Missing required fields: email, phone, theaterName, date, time, occasion",
    }


async def test_manual_booking(client):
    response = await client.post(
        "/api/booking",
        json=booking_payload(
            isManualBooking=True,
            createdBy="Staff",
            staffId="EMP7",
            staffName="Ravi",
            paymentStatus="advance paid",
        ),
    )

    assert response.status_code == 201
    booking = response.json()["booking"]
    assert booking["status"] == "manual"
    assert booking["bookingType"] == "Manual"
    assert booking["paymentStatus"] == "partial"

    counters = await client.get("/api/admin/counters", headers=ADMIN_HEADERS)
    assert counters.json()["staffCounters"] == {"EMP7": 1}


async def test_booking_keeps_selected_items(client):
    response = await client.post(
        "/api/booking",
        json=booking_payload(
            wantDecorItems="Yes",
            decorationFee=750,
            selectedDecorItems=[{"name": "Balloons", "price": 300}],
        ),
    )

    booking = response.json()["booking"]
    assert booking["decorationAppliedFee"] == 750
    assert booking["selectedDecorItems"][0]["name"] == "Balloons"


async def test_labelled_booking_matches_occasion_fields(client, db_session):
    db_session.add(
        Occasion(
            name="Birthday",
            required_fields=["birthdayName"],
            field_labels={"birthdayName": "Birthday Person's Name"},
        )
    )
    await db_session.commit()

    payload = booking_payload(occasionData={"Birthday Name": "Riya"})
    del payload["advancePayment"]
    response = await client.post("/api/new-booking", json=payload)

    assert response.status_code == 201
    data = response.json()
    assert data["message"] == "Booking completed successfully with dynamic fields!"
    booking = data["booking"]
    assert booking["advancePayment"] == 600
    assert booking["occasionFields"] == {
        "birthdayName": "Riya",
        "birthdayName_label": "Birthday Person's Name",
        "birthdayName_value": "Riya",
    }
    assert booking["birthdayName"] == "Riya"


async def test_get_booking_by_ticket_number(client, make_booking):
    created = await make_booking()

    response = await client.get("/api/booking", params={"bookingId": "FMT0001"})

    assert response.status_code == 200
    assert response.json()["booking"]["bookingId"] == created["bookingId"]


async def test_get_unknown_booking(client):
    response = await client.get("/api/booking", params={"bookingId": "FMT9999"})

    assert response.status_code == 404
    assert response.json()["error"] == "Booking not found"


async def test_incomplete_booking_flow(client):
    response = await client.post(
        "/api/incomplete-booking",
        json={"email": "Late@Example.com", "name": "Late", "theaterName": "Lavish Theater", "date": "2030-01-15"},
    )
    assert response.status_code == 201
    assert response.json()["bookingId"] == "INC0001"

    reminder = await client.post("/api/email/incomplete", json={"bookingId": "INC0001"})
    assert reminder.status_code == 200
    assert reminder.json()["message"] == "Reminder email queued"

    booked = await client.post("/api/booking", json=booking_payload(incompleteBookingId="INC0001"))
    assert booked.status_code == 201

    missing = await client.post("/api/email/incomplete", json={"bookingId": "INC0001"})
    assert missing.status_code == 404


async def test_incomplete_booking_requires_email(client):
    response = await client.post("/api/incomplete-booking", json={"name": "Nobody"})

    assert response.status_code == 400
    assert response.json()["error"] == "Email is required"


async def test_reminder_requires_booking_id(client):
    response = await client.post("/api/email/incomplete", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "Booking ID is required"


async def test_cleanup_expired_incomplete(client, db_session, monkeypatch):
    monkeypatch.setattr(get_settings(), "INCOMPLETE_BOOKING_TTL_HOURS", -1)
    await client.post("/api/incomplete-booking", json={"email": "gone@example.com"})

    response = await client.delete("/api/incomplete-booking")

    assert response.status_code == 200
    assert response.json()["deletedCount"] == 1
    remaining = await db_session.execute(select(IncompleteBooking))
    assert remaining.scalars().all() == []


async def test_complete_expired_bookings(client, db_session, fake_redis, make_booking):
    await make_booking(date="2020-01-01")
    await make_booking(date="2030-01-15")

    completed = await BookingService(db_session, fake_redis).complete_expired_bookings()

    assert completed == 1
    archived = await db_session.execute(
        select(BookingArchive).where(BookingArchive.kind == ArchiveKind.COMPLETED)
    )
    records = [row.record for row in archived.scalars().all()]
    assert len(records) == 1
    assert records[0]["status"] == "completed"
    assert records[0]["date"] == "2020-01-01"


async def _counters_down(self, name, include_total=True):
    raise RuntimeError("counter table locked")


async def test_booking_is_returned_when_counters_fail(client, monkeypatch):
    monkeypatch.setattr(CounterService, "increment", _counters_down)

    response = await client.post("/api/booking", json=booking_payload())

    assert response.status_code == 201, response.text
    data = response.json()
    assert data["booking"]["ticketNumber"] == "FMT0001"
    assert data["booking"]["email"] == "asha@example.com"

    fetched = await client.get("/api/booking", params={"bookingId": data["bookingId"]})
    assert fetched.status_code == 200


async def test_completing_booking_survives_counter_failure(client, make_booking, monkeypatch):
    created = await make_booking()
    monkeypatch.setattr(CounterService, "increment", _counters_down)

    response = await client.put(
        "/api/admin/update-booking",
        json={"bookingId": created["bookingId"], "status": "completed"},
        headers=ADMIN_HEADERS,
    )

    assert response.status_code == 200, response.text
    assert response.json()["booking"]["status"] == "completed"
