"""Promo code validation against the Stripe promotion-code catalog."""

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from dlvrit.common.exceptions import InvalidPromoCodeError
from dlvrit.payments.models import Discount

if TYPE_CHECKING:
    from dlvrit.payments.gateway import PaymentGateway

logger = logging.getLogger(__name__)


@dataclass
class PromoValidation:
    valid: bool
    percent_off: float = 0
    amount_off: int = 0
    promotion_code_id: Optional[str] = None


class PromoCodeValidator:
    """Looks up active promotion codes by exact code."""

    def __init__(self, gateway: "PaymentGateway"):
        self.gateway = gateway

    async def lookup(self, code: str) -> Optional[Discount]:
        code = (code or "").strip()
        if not code:
            return None
        return await self.gateway.find_promotion_code(code)

    async def validate(self, code: str) -> PromoValidation:
        """Report whether ``code`` is redeemable; an unknown code is not an error."""
        discount = await self.lookup(code)
        if discount is None:
            logger.info("Promo code rejected: %s", code)
            return PromoValidation(valid=False)

        return PromoValidation(
            valid=True,
            percent_off=discount.percent_off or 0,
            amount_off=discount.amount_off or 0,
            promotion_code_id=discount.id,
        )

    async def resolve(self, code: str) -> Discount:
        """Return the discount for ``code`` or raise InvalidPromoCodeError."""
        discount = await self.lookup(code)
        if discount is None:
            logger.info("Checkout rejected promo code: %s", code)
            raise InvalidPromoCodeError()
        return discount
