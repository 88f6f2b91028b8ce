"""API tests for admin endpoints: auth, dashboard, catalog and exports."""

from io import BytesIO

from openpyxl import load_workbook

from tests.conftest import ADMIN_HEADERS


async def test_admin_requires_token(client):
    missing = await client.get("/api/admin/bookings")
    wrong = await client.get("/api/admin/bookings", headers={"X-Admin-Token": "nope"})

    assert missing.status_code == 403
    assert missing.json() == {"success": False, "error": "Admin access required"}
    assert wrong.status_code == 403


async def test_list_and_update_bookings(client, make_booking):
    created = await make_booking()
    await make_booking(isManualBooking=True, time="7:30 PM - 10:30 PM")

    listed = await client.get("/api/admin/bookings", headers=ADMIN_HEADERS)
    manual = await client.get("/api/admin/manual-bookings", headers=ADMIN_HEADERS)
    assert listed.json()["total"] == 2
    assert manual.json()["total"] == 1
    assert manual.json()["manualBookings"][0]["bookingType"] == "Manual"

    updated = await client.put(
        "/api/admin/update-booking",
        json={"bookingId": created["bookingId"], "status": "completed", "paymentStatus": "paid", "notes": "Done"},
        headers=ADMIN_HEADERS,
    )
    booking = updated.json()["booking"]
    assert booking["status"] == "completed"
    assert booking["paymentStatus"] == "paid"
    assert booking["notes"] == "Done"
    assert booking["completedAt"] is not None

    exported = await client.get(
        "/api/admin/export-bookings-json", params={"type": "completed"}, headers=ADMIN_HEADERS
    )
    assert exported.json()["count"] == 1


async def test_delete_booking(client, make_booking):
    created = await make_booking()

    deleted = await client.delete(f"/api/admin/bookings/{created['bookingId']}", headers=ADMIN_HEADERS)
    again = await client.delete(f"/api/admin/bookings/{created['bookingId']}", headers=ADMIN_HEADERS)

    assert deleted.status_code == 200
    assert again.status_code == 404


async def test_dashboard_stats(client, make_booking):
    await make_booking()
    await make_booking(isManualBooking=True, time="7:30 PM - 10:30 PM")
    await client.post("/api/incomplete-booking", json={"email": "late@example.com"})

    response = await client.get("/api/admin/dashboard-stats", headers=ADMIN_HEADERS)

    stats = response.json()["stats"]
    assert stats["onlineBookings"]["total"] == 1
    assert stats["manualBookings"]["today"] == 1
    assert stats["allBookings"]["total"] == 2
    assert stats["incompleteBookings"]["total"] == 1
    assert stats["confirmedToday"] == {"confirmed": 2, "completed": 0}


async def test_reset_counters_keeps_id_sequence(client, make_booking):
    await make_booking()

    reset = await client.post("/api/admin/reset-counters", headers=ADMIN_HEADERS)
    assert reset.json()["message"] == "All counters reset to zero"

    counters = await client.get("/api/admin/counters", headers=ADMIN_HEADERS)
    assert counters.json()["counters"]["confirmed"]["total"] == 0

    second = await make_booking(time="7:30 PM - 10:30 PM")
    assert second["booking"]["ticketNumber"] == "FMT0002"


async def test_pricing_falls_back_until_configured(client):
    fallback = await client.get("/api/pricing")
    assert fallback.json()["source"] == "fallback"
    assert fallback.json()["pricing"]["slotBookingFee"] == 600

    created = await client.post(
        "/api/admin/pricing",
        json={"name": "Standard", "slotBookingFee": 1000, "extraGuestFee": 400, "decorationFees": 750},
        headers=ADMIN_HEADERS,
    )
    assert created.status_code == 201
    pricing_id = created.json()["pricing"]["id"]

    await client.put(
        "/api/admin/pricing", json={"id": pricing_id, "convenienceFee": 49}, headers=ADMIN_HEADERS
    )
    current = await client.get("/api/pricing")
    assert current.json()["source"] == "database"
    assert current.json()["pricing"]["convenienceFee"] == 49
    assert current.json()["pricing"]["slotBookingFee"] == 1000


async def test_pricing_requires_name(client):
    response = await client.post("/api/admin/pricing", json={"slotBookingFee": 1}, headers=ADMIN_HEADERS)

    assert response.status_code == 400
    assert response.json()["error"] == "Pricing name is required"


async def test_theater_crud(client):
    created = await client.post(
        "/api/admin/theaters",
        json={
            "name": "Lavish Theater",
            "price": 1999,
            "capacity": {"min": 2, "max": 4},
            "timeSlots": [{"startTime": "16:00", "endTime": "19:00"}],
        },
        headers=ADMIN_HEADERS,
    )
    assert created.status_code == 201
    theater = created.json()["theater"]
    assert theater["capacity"] == {"min": 2, "max": 4}
    assert theater["timeSlots"][0]["slotId"] == "SLOT-16:00"

    await client.put(
        "/api/admin/theaters", json={"id": theater["id"], "isActive": False}, headers=ADMIN_HEADERS
    )
    public = await client.get("/api/theaters")
    everything = await client.get("/api/admin/theaters", headers=ADMIN_HEADERS)
    assert public.json()["total"] == 0
    assert everything.json()["total"] == 1

    duplicate = await client.post("/api/admin/theaters", json={"name": "Lavish Theater"}, headers=ADMIN_HEADERS)
    assert duplicate.status_code == 409

    deleted = await client.delete("/api/admin/theaters", params={"id": theater["id"]}, headers=ADMIN_HEADERS)
    assert deleted.status_code == 200


async def test_occasions_and_services(client):
    occasion = await client.post(
        "/api/admin/occasions",
        json={"name": "Anniversary", "requiredFields": ["partnerName"], "fieldLabels": {"partnerName": "Partner"}},
        headers=ADMIN_HEADERS,
    )
    service = await client.post(
        "/api/admin/services",
        json={"name": "Cakes", "items": [{"id": "cake-1", "name": "Chocolate", "price": 550}]},
        headers=ADMIN_HEADERS,
    )
    assert occasion.status_code == 201
    assert service.status_code == 201

    occasions = await client.get("/api/occasions")
    services = await client.get("/api/services")
    assert occasions.json()["occasions"][0]["fieldLabels"] == {"partnerName": "Partner"}
    assert services.json()["services"][0]["items"][0]["price"] == 550


async def test_settings_round_trip(client):
    response = await client.put(
        "/api/admin/settings",
        json={"sitePhone": "+91 90000 00000", "chatbotMemoryJson": '{"offer": "10% off"}'},
        headers=ADMIN_HEADERS,
    )
    assert response.status_code == 200

    settings = await client.get("/api/admin/settings", headers=ADMIN_HEADERS)
    assert settings.json()["settings"]["sitePhone"] == "+91 90000 00000"
    assert settings.json()["settings"]["chatbotMemoryJson"] == '{"offer": "10% off"}'


async def test_export_manual_bookings_xlsx(client, make_booking):
    await make_booking(isManualBooking=True, staffId="EMP7", staffName="Ravi")

    response = await client.get("/api/admin/export-bookings", params={"type": "manual"}, headers=ADMIN_HEADERS)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith(
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    assert "manual_bookings_" in response.headers["content-disposition"]

    sheet = load_workbook(BytesIO(response.content)).active
    rows = list(sheet.iter_rows(values_only=True))
    assert rows[0][0] == "Booking ID"
    assert len(rows) == 2
    assert "Ravi" in rows[1]


async def test_unknown_export_type_defaults_to_completed(client):
    response = await client.get(
        "/api/admin/export-bookings-json", params={"type": "everything"}, headers=ADMIN_HEADERS
    )

    assert response.json() == {"success": True, "type": "completed", "count": 0, "records": []}
