"""Checkout API router."""

from typing import Optional, Union

from fastapi import APIRouter, Depends, Header

from dlvrit.checkout.schemas import (
    CheckoutResponse,
    CheckoutSuccessRequest,
    HostedCheckoutResponse,
    OrderRequest,
    PromoCodeRequest,
    PromoCodeResponse,
)
from dlvrit.checkout.service import CheckoutService, HostedCheckoutResult
from dlvrit.deps import get_checkout_service, get_promo_validator
from dlvrit.payments.promo import PromoCodeValidator

router = APIRouter()


@router.post(
    "/create-checkout-session",
    response_model=Union[CheckoutResponse, HostedCheckoutResponse],
)
async def create_checkout_session(
    body: OrderRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    svc: CheckoutService = Depends(get_checkout_service),
):
    result = await svc.create_checkout_session(body, idempotency_key=idempotency_key)
    if isinstance(result, HostedCheckoutResult):
        return HostedCheckoutResponse(url=result.url, session_id=result.session_id)
    return CheckoutResponse(upload_url=result.upload_url)


@router.post("/checkout-success", response_model=CheckoutResponse)
async def checkout_success(
    body: CheckoutSuccessRequest,
    svc: CheckoutService = Depends(get_checkout_service),
):
    result = await svc.confirm_checkout(body.session_id)
    return CheckoutResponse(upload_url=result.upload_url)


@router.post(
    "/validate-promo-code",
    response_model=PromoCodeResponse,
    response_model_exclude_none=True,
)
async def validate_promo_code(
    body: PromoCodeRequest,
    validator: PromoCodeValidator = Depends(get_promo_validator),
):
    result = await validator.validate(body.promo)
    if not result.valid:
        return PromoCodeResponse(valid=False)
    return PromoCodeResponse(
        valid=True,
        percent_off=result.percent_off,
        amount_off=result.amount_off,
    )
