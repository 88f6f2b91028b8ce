"""Tests for invoice computation and rendering."""

from app.services.invoice_service import (
    build_invoice,
    enrich_item_prices,
    format_inr,
    invoice_filename,
    occasion_details,
    parse_amount,
    render_invoice_html,
    render_invoice_pdf,
)


def _record(**overrides) -> dict:
    record = {
        "bookingId": "FMT-2030-1",
        "name": "Asha Verma",
        "email": "asha@example.com",
        "phone": "9876543210",
        "theaterName": "Lavish Theater",
        "date": "2030-01-15",
        "time": "4:00 PM - 7:00 PM",
        "occasion": "Birthday",
        "numberOfPeople": 4,
        "totalAmount": 3000,
        "advancePayment": 600,
        "venuePayment": 2400,
        "pricingData": {"extraGuestFee": 400},
        "selectedFoodItems": [{"name": "Popcorn", "price": 150, "quantity": 2}],
    }
    record.update(overrides)
    return record


def test_format_inr_uses_indian_grouping():
    assert format_inr(999) == "999"
    assert format_inr(1000) == "1,000"
    assert format_inr(123456) == "1,23,456"
    assert format_inr(12345678) == "1,23,45,678"
    assert format_inr(-1500) == "-1,500"


def test_parse_amount_reads_currency_text():
    assert parse_amount("₹1,200") == 1200
    assert parse_amount(None) == 0
    assert parse_amount(True) == 0


def test_invoice_filename_hyphenates_name():
    assert invoice_filename("Asha  Verma!") == "Invoice-FMT-Asha-Verma.pdf"
    assert invoice_filename("") == "Invoice-FMT-Customer.pdf"


def test_build_invoice_derives_theater_line():
    invoice = build_invoice(_record())

    assert invoice.invoice_no == "FMT-2030-1 - Asha Verma"
    assert invoice.total_after_discount == 3000
    # 3000 total - 800 extra guests - 300 food
    assert invoice.lines[0].description == "Lavish Theater"
    assert invoice.lines[0].amount == 1900
    assert invoice.lines[1].description == "Extra Guests (2 guests)"
    assert invoice.lines[1].amount == 800
    assert invoice.lines[2].description == "Food - Popcorn"
    assert invoice.lines[2].amount == 300
    assert invoice.slot_booking_amount == 600
    assert invoice.venue_payment == 2400


def test_build_invoice_with_discounts_and_penalty():
    invoice = build_invoice(
        _record(
            totalAmount=2700,
            discountAmount=200,
            specialDiscount=100,
            penaltyCharges=0,
            couponCode="SAVE10",
            couponDiscountType="percentage",
            couponDiscountValue=10,
        )
    )

    assert invoice.coupon_discount == 200
    assert invoice.special_discount == 100
    assert invoice.total_before_adjustments == 3000
    assert invoice.coupon_description == "SAVE10 (10%)"


def test_zero_discounts_fall_through_to_alternate_keys():
    invoice = build_invoice(
        _record(discountAmount=0.0, couponDiscount=150, specialDiscount=0.0, adminDiscount=75)
    )

    assert invoice.coupon_discount == 150
    assert invoice.special_discount == 75


def test_build_invoice_venue_method_only_when_paid():
    unpaid = build_invoice(_record(venuePaymentMethod="upi"))
    paid = build_invoice(_record(venuePaymentMethod="upi", paymentStatus="paid"))

    assert unpaid.venue_payment_method == ""
    assert paid.venue_payment_method == "UPI"


def test_occasion_details_use_catalog_labels():
    data = {"birthdayName": "Riya", "birthdayName_label": "Birthday Name"}
    details = occasion_details(data, {"birthdayName": "Birthday Person"})
    assert details == [("Birthday Person", "Riya")]


def test_occasion_details_fix_swapped_label_and_value():
    data = {"birthdayName": "Birthday Person", "birthdayName_label": "Riya"}
    details = occasion_details(data, {"birthdayName": "Birthday Person"})
    assert details == [("Birthday Person", "Riya")]


def test_enrich_item_prices_from_catalog():
    data = {"selectedCakes": [{"id": "cake-1", "name": "Chocolate", "price": 0}]}
    enriched = enrich_item_prices(data, {"id:cake-1": 550.0})
    assert enriched["selectedCakes"][0]["price"] == 550.0
    assert enriched["selectedCakes"][0]["quantity"] == 1


def test_render_html_and_pdf():
    invoice = build_invoice(_record())

    page = render_invoice_html(invoice)
    assert "FMT-2030-1 - Asha Verma" in page
    assert "Food - Popcorn" in page
    assert "3,000" in page

    pdf = render_invoice_pdf(invoice)
    assert pdf.startswith(b"%PDF")
