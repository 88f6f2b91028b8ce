"""API tests for coupon validation and admin management."""

from tests.conftest import ADMIN_HEADERS


async def _create_coupon(client, **data) -> dict:
    response = await client.post("/api/admin/coupons", json=data, headers=ADMIN_HEADERS)
    assert response.status_code == 201, response.text
    return response.json()


async def test_percentage_coupon(client):
    created = await _create_coupon(client, couponCode="save10", discountType="percentage", discountValue=10)
    assert created["couponCode"] == "SAVE10"

    response = await client.post("/api/coupons/validate", json={"code": "Save10", "amount": 1999})

    assert response.status_code == 200
    data = response.json()
    assert data["discountAmount"] == 200
    assert data["coupon"] == {"couponCode": "SAVE10", "discountType": "percentage", "discountValue": 10}


async def test_fixed_coupon_is_capped_at_amount(client):
    await _create_coupon(client, couponCode="FLAT500", discountType="fixed", discountValue=500)

    response = await client.post("/api/coupons/validate", json={"couponCode": "FLAT500", "amount": 300})

    assert response.json()["discountAmount"] == 300


async def test_unknown_coupon(client):
    response = await client.post("/api/coupons/validate", json={"couponCode": "NOPE", "amount": 1000})

    assert response.status_code == 404
    assert response.json()["error"] == "Invalid coupon code"


async def test_missing_coupon_code(client):
    response = await client.post("/api/coupons/validate", json={"amount": 1000})

    assert response.status_code == 400
    assert response.json()["error"] == "Coupon code is required"


async def test_expired_and_inactive_coupons(client):
    await _create_coupon(
        client, couponCode="OLD", discountValue=10, expireDate="2020-01-01T00:00:00"
    )
    await _create_coupon(client, couponCode="OFF", discountValue=10, isActive=False)

    expired = await client.post("/api/coupons/validate", json={"couponCode": "OLD", "amount": 1000})
    inactive = await client.post("/api/coupons/validate", json={"couponCode": "OFF", "amount": 1000})

    assert expired.json()["error"] == "Coupon has expired"
    assert inactive.json()["error"] == "Coupon is inactive"


async def test_duplicate_coupon_code(client):
    await _create_coupon(client, couponCode="DUP", discountValue=5)

    response = await client.post(
        "/api/admin/coupons", json={"couponCode": "dup", "discountValue": 5}, headers=ADMIN_HEADERS
    )

    assert response.status_code == 409


async def test_update_and_delete_coupon(client):
    created = await _create_coupon(client, couponCode="EDIT", discountValue=5)

    updated = await client.put(
        "/api/admin/coupons",
        json={"id": created["id"], "discountValue": 15, "discountType": "fixed"},
        headers=ADMIN_HEADERS,
    )
    assert updated.json()["discountValue"] == 15
    assert updated.json()["discountType"] == "fixed"

    deleted = await client.delete("/api/admin/coupons", params={"id": created["id"]}, headers=ADMIN_HEADERS)
    assert deleted.status_code == 200

    listed = await client.get("/api/admin/coupons", headers=ADMIN_HEADERS)
    assert listed.json()["total"] == 0
