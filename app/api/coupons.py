"""Coupon API endpoints."""

from fastapi import APIRouter, HTTPException

from app.api.dependencies import CouponServiceDep
from app.schemas.coupon import CouponSummary, CouponValidateRequest, CouponValidateResponse
from app.services.coupon_service import CouponError

router = APIRouter()


@router.post(
    "/validate",
    response_model=CouponValidateResponse,
    summary="Validate coupon",
)
async def validate_coupon(
    request: CouponValidateRequest,
    coupon_service: CouponServiceDep,
) -> CouponValidateResponse:
    """Check a coupon code and compute its discount for an amount."""
    try:
        coupon, discount = await coupon_service.validate_coupon(request.coupon_code, request.amount)
    except CouponError as e:
        raise HTTPException(status_code=e.status_code, detail=str(e))

    return CouponValidateResponse(
        discount_amount=discount,
        coupon=CouponSummary.model_validate(coupon),
    )
