"""Tests for fee reconciliation helpers."""

import pytest

from app.models.booking import PaymentStatus
from app.schemas.booking import BookingCreate
from app.services.pricing_service import (
    decoration_applied_fee,
    default_advance,
    extra_guests,
    normalize_payment_status,
    resolve_slot_booking_fee,
    resolve_venue_payment,
    round_amount,
)


def _request(**data) -> BookingCreate:
    return BookingCreate.model_validate(data)


@pytest.mark.parametrize(
    "value,expected",
    [(2.5, 3.0), (3.5, 4.0), (199.9, 200.0), (199.4, 199.0), (0, 0.0)],
)
def test_round_amount_rounds_halves_up(value, expected):
    assert round_amount(value) == expected


def test_default_advance_is_thirty_percent():
    assert default_advance(2000) == 600
    assert default_advance(1999) == 600


def test_slot_fee_prefers_explicit_then_pricing_then_advance():
    assert resolve_slot_booking_fee(_request(slotBookingFee=800), 600) == 800
    assert resolve_slot_booking_fee(_request(pricingData={"slotBookingFee": 700}), 600) == 700
    assert resolve_slot_booking_fee(_request(), 600) == 600


def test_venue_payment_is_remainder_unless_given():
    assert resolve_venue_payment(_request(), 2000, 600) == 1400
    assert resolve_venue_payment(_request(venuePayment=0), 2000, 600) == 0


def test_decoration_fee_only_when_wanted():
    assert decoration_applied_fee(_request(decorationFee=750)) == 0
    assert decoration_applied_fee(_request(decorationFee=750, wantDecorItems="Yes")) == 750
    selected = _request(
        pricingData={"decorationFees": 500},
        selectedDecorItems=[{"name": "Balloons", "price": 300}],
    )
    assert decoration_applied_fee(selected) == 500


def test_extra_guests_above_minimum():
    assert extra_guests(4) == 2
    assert extra_guests(1) == 0
    assert extra_guests(6, capacity_min=4) == 2


@pytest.mark.parametrize(
    "value,expected",
    [
        ("Paid", PaymentStatus.PAID),
        ("fully-paid", PaymentStatus.PAID),
        ("advance paid", PaymentStatus.PARTIAL),
        ("partial", PaymentStatus.PARTIAL),
        ("pending", PaymentStatus.UNPAID),
        (None, PaymentStatus.UNPAID),
    ],
)
def test_normalize_payment_status(value, expected):
    assert normalize_payment_status(value) == expected
