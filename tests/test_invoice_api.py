"""API tests for invoice generation."""


async def test_html_invoice_for_booking(client, make_booking):
    created = await make_booking()

    response = await client.get("/api/generate-invoice", params={"bookingId": created["bookingId"]})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert created["bookingId"] in response.text
    assert "Asha Verma" in response.text


async def test_pdf_invoice_for_ticket_number(client, make_booking):
    created = await make_booking()
    ticket = created["booking"]["ticketNumber"]

    response = await client.get("/api/generate-invoice", params={"bookingId": ticket, "format": "pdf"})

    assert response.status_code == 200
    assert response.headers["content-type"] == "application/pdf"
    assert 'filename="Invoice-FMT-Asha-Verma.pdf"' in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


async def test_invoice_for_unknown_booking(client):
    response = await client.get("/api/generate-invoice", params={"bookingId": "FMT-2030-99"})

    assert response.status_code == 404
    assert response.json()["error"] == "Booking not found"


async def test_invoice_requires_booking_id(client):
    response = await client.get("/api/generate-invoice")

    assert response.status_code == 400
    assert response.json()["error"] == "Booking ID is required"


async def test_invoice_from_posted_booking(client):
    response = await client.post(
        "/api/generate-invoice",
        json={
            "bookingId": "FMT-2030-5",
            "name": "Ravi Kumar",
            "theaterName": "Lavish Theater",
            "date": "2030-01-15",
            "time": "4:00 PM - 7:00 PM",
            "occasion": "Birthday",
            "totalAmount": 2500,
            "advancePayment": 600,
        },
    )

    assert response.status_code == 200
    assert "Invoice-FMT-Ravi-Kumar.pdf" in response.headers["content-disposition"]
    assert response.content.startswith(b"%PDF")


async def test_posted_invoice_requires_data(client):
    response = await client.post("/api/generate-invoice", json={})

    assert response.status_code == 400
    assert response.json()["error"] == "Booking data is required"


async def test_invoice_shows_discounts_sent_with_booking(client, make_booking):
    created = await make_booking(
        couponDiscount=200,
        appliedCouponCode="SAVE10",
        couponDiscountType="percentage",
        couponDiscountValue=10,
        adminDiscount=100,
        Discount=50,
    )
    booking = created["booking"]
    assert booking["couponCode"] == "SAVE10"
    assert booking["discountAmount"] == 200
    assert booking["specialDiscount"] == 100
    assert booking["genericDiscount"] == 50

    response = await client.get("/api/generate-invoice", params={"bookingId": created["bookingId"]})

    assert response.status_code == 200
    assert "Coupon Discount (SAVE10 (10%))" in response.text
    assert "Special Discount" in response.text
    assert "<strong>-100</strong>" in response.text
    assert "<strong>-50</strong>" in response.text
