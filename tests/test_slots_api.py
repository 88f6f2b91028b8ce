"""API tests for slot availability."""

from tests.conftest import ADMIN_HEADERS


async def _create_theater(client, **overrides):
    payload = {
        "name": "Lavish Theater",
        "price": 1999,
        "timeSlots": [
            {"startTime": "16:00", "endTime": "19:00"},
            {"startTime": "19:30", "endTime": "22:30"},
        ],
    }
    payload.update(overrides)
    response = await client.post("/api/admin/theaters", json=payload, headers=ADMIN_HEADERS)
    assert response.status_code == 201, response.text
    return response.json()["theater"]


async def test_time_slots_mark_booked_range(client, make_booking):
    await _create_theater(client)
    await make_booking()

    response = await client.get(
        "/api/time-slots-with-bookings", params={"date": "2030-01-15", "theater": "Lavish Theater"}
    )

    body = response.json()
    assert response.status_code == 200
    assert body["date"] == "2030-01-15"
    slots = body["timeSlots"]
    assert [slot["timeRange"] for slot in slots] == ["4:00 PM - 7:00 PM", "7:30 PM - 10:30 PM"]
    assert [slot["bookingStatus"] for slot in slots] == ["booked", "available"]


async def test_bookings_on_other_dates_do_not_block(client, make_booking):
    await _create_theater(client)
    await make_booking(date="2030-01-16")

    response = await client.get(
        "/api/time-slots-with-bookings", params={"date": "2030-01-15", "theater": "Lavish Theater"}
    )

    assert {slot["bookingStatus"] for slot in response.json()["timeSlots"]} == {"available"}


async def test_slots_match_bookings_stored_in_other_date_formats(client, make_booking):
    await _create_theater(client)
    await make_booking(date="15/01/2030", time="7:30 PM - 10:30 PM")

    same_day = await client.get(
        "/api/time-slots-with-bookings", params={"date": "2030-01-15", "theater": "Lavish Theater"}
    )
    next_day = await client.get(
        "/api/time-slots-with-bookings", params={"date": "2030-01-16", "theater": "Lavish Theater"}
    )

    assert [slot["bookingStatus"] for slot in same_day.json()["timeSlots"]] == ["available", "booked"]
    assert {slot["bookingStatus"] for slot in next_day.json()["timeSlots"]} == {"available"}


async def test_inactive_slots_are_hidden(client):
    await _create_theater(
        client,
        timeSlots=[
            {"startTime": "16:00", "endTime": "19:00"},
            {"startTime": "19:30", "endTime": "22:30", "isActive": False},
        ],
    )

    response = await client.get(
        "/api/time-slots-with-bookings", params={"date": "2030-01-15", "theater": "Lavish Theater"}
    )

    assert [slot["slotId"] for slot in response.json()["timeSlots"]] == ["SLOT-16:00"]


async def test_unknown_theater_uses_default_slots(client):
    response = await client.get(
        "/api/time-slots-with-bookings", params={"date": "2030-01-15", "theater": "Nowhere"}
    )

    slots = response.json()["timeSlots"]
    assert len(slots) == 4
    assert slots[0]["startTime"] == "09:00"
    assert slots[-1]["endTime"] == "22:30"


async def test_booked_slots_include_pending_checkouts(client, make_booking):
    await make_booking()
    await client.post(
        "/api/incomplete-booking",
        json={
            "email": "late@example.com",
            "theaterName": "Lavish Theater",
            "date": "15/01/2030",
            "time": "7:30 PM - 10:30 PM",
        },
    )

    response = await client.get("/api/booked-slots", params={"date": "2030-01-15", "theater": "Lavish Theater"})

    body = response.json()
    assert sorted(body["bookedTimeSlots"]) == ["4:00 PM - 7:00 PM", "7:30 PM - 10:30 PM"]
    assert body["totalBookings"] == 2


async def test_booked_slots_filter_by_theater(client, make_booking):
    await make_booking()

    response = await client.get("/api/booked-slots", params={"date": "2030-01-15", "theater": "Other Theater"})

    assert response.json()["bookedTimeSlots"] == []


async def test_booked_slots_require_date(client):
    response = await client.get("/api/booked-slots")

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "Date parameter is required"}
