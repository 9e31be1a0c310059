"""Payment capability and its Stripe implementation."""

import logging
from typing import Any, Optional, Protocol

import stripe

from dlvrit.common.exceptions import CheckoutValidationError, PaymentError
from dlvrit.common.outbound import call_blocking
from dlvrit.payments.models import (
    Charge,
    ChargeRequest,
    Discount,
    HostedSession,
    HostedSessionRequest,
    Price,
)

logger = logging.getLogger(__name__)


class PaymentGateway(Protocol):
    async def get_unit_price(self, product_id: str) -> Price: ...

    async def create_charge(self, request: ChargeRequest) -> Charge: ...

    async def create_hosted_session(self, request: HostedSessionRequest) -> HostedSession: ...

    async def retrieve_session(self, session_id: str) -> HostedSession: ...

    async def find_promotion_code(self, code: str) -> Optional[Discount]: ...

    async def get_discount(self, promotion_code_id: str) -> Discount: ...


def _as_dict(obj: Any) -> dict[str, Any]:
    if obj is None:
        return {}
    if isinstance(obj, dict):
        return dict(obj)
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    return dict(obj)


class StripeGateway:
    """Talks to Stripe with a per-call API key; the SDK's global key is never set."""

    def __init__(self, api_key: str, timeout: float = 10.0):
        self.api_key = api_key
        self.timeout = timeout

    async def _call(self, func, *args, **kwargs):
        try:
            return await call_blocking(
                "payment", self.timeout, func, *args, api_key=self.api_key, **kwargs
            )
        except stripe.StripeError as e:
            logger.error(
                "Stripe request failed: status=%s code=%s message=%s headers=%s body=%s",
                e.http_status,
                e.code,
                e.user_message or str(e),
                dict(e.headers or {}),
                e.json_body,
            )
            raise PaymentError(
                e.user_message or str(e) or "Payment failed",
                status_code=e.http_status,
                headers=dict(e.headers or {}),
                body=e.json_body,
            ) from e

    async def get_unit_price(self, product_id: str) -> Price:
        prices = await self._call(
            stripe.Price.list, product=product_id, active=True, limit=1
        )
        if not prices.data:
            raise CheckoutValidationError(f"No active price for product {product_id}")
        price = prices.data[0]
        if price.unit_amount is None:
            raise CheckoutValidationError(f"Price for product {product_id} has no unit amount")
        return Price(unit_amount=int(price.unit_amount), currency=price.currency, id=price.id)

    async def create_charge(self, request: ChargeRequest) -> Charge:
        kwargs: dict[str, Any] = {}
        if request.idempotency_key:
            kwargs["idempotency_key"] = request.idempotency_key

        intent = await self._call(
            stripe.PaymentIntent.create,
            amount=request.amount,
            currency=request.currency,
            payment_method=request.payment_method,
            confirm=True,
            automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
            receipt_email=request.receipt_email,
            metadata=request.metadata,
            **kwargs,
        )
        if intent.status != "succeeded":
            logger.warning("PaymentIntent %s ended in status %s", intent.id, intent.status)
            raise PaymentError(
                f"Payment was not completed (status: {intent.status})",
                status_code=402,
            )
        return Charge(
            id=intent.id,
            amount=int(intent.amount),
            currency=intent.currency,
            status=intent.status,
        )

    async def create_hosted_session(self, request: HostedSessionRequest) -> HostedSession:
        if request.price_id:
            line_item: dict[str, Any] = {"price": request.price_id, "quantity": request.quantity}
        else:
            line_item = {
                "price_data": {
                    "currency": request.currency,
                    "unit_amount": request.unit_amount,
                    "product_data": {"name": request.product_name},
                },
                "quantity": request.quantity,
            }

        params: dict[str, Any] = {
            "mode": "payment",
            "line_items": [line_item],
            "customer_email": request.customer_email,
            "success_url": request.success_url,
            "cancel_url": request.cancel_url,
            "metadata": request.metadata,
        }
        if request.promotion_code_id:
            params["discounts"] = [{"promotion_code": request.promotion_code_id}]

        session = await self._call(stripe.checkout.Session.create, **params)
        return self._to_session(session)

    async def retrieve_session(self, session_id: str) -> HostedSession:
        session = await self._call(stripe.checkout.Session.retrieve, session_id)
        return self._to_session(session)

    async def find_promotion_code(self, code: str) -> Optional[Discount]:
        codes = await self._call(stripe.PromotionCode.list, code=code, active=True, limit=1)
        if not codes.data:
            return None
        return await self._to_discount(codes.data[0])

    async def get_discount(self, promotion_code_id: str) -> Discount:
        promo = await self._call(stripe.PromotionCode.retrieve, promotion_code_id)
        return await self._to_discount(promo)

    async def _to_discount(self, promo: Any) -> Discount:
        coupon = getattr(promo, "coupon", None)
        if coupon is None:
            # Newer API versions nest the coupon under "promotion"
            coupon = getattr(getattr(promo, "promotion", None), "coupon", None)
        if isinstance(coupon, str):
            coupon = await self._call(stripe.Coupon.retrieve, coupon)

        return Discount(
            id=promo.id,
            code=getattr(promo, "code", "") or "",
            percent_off=getattr(coupon, "percent_off", None),
            amount_off=getattr(coupon, "amount_off", None),
            currency=getattr(coupon, "currency", None),
        )

    @staticmethod
    def _to_session(session: Any) -> HostedSession:
        details = getattr(session, "customer_details", None)
        email = getattr(details, "email", None) or getattr(session, "customer_email", None)
        return HostedSession(
            id=session.id,
            url=getattr(session, "url", None),
            payment_status=getattr(session, "payment_status", "") or "",
            customer_email=email,
            metadata=_as_dict(getattr(session, "metadata", None)),
        )
