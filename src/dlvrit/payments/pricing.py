"""Price resolution and quoting in integer minor currency units."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional

from dlvrit.common.config import DlvritSettings, PricingMode
from dlvrit.common.exceptions import CheckoutValidationError, InvalidPromoCodeError
from dlvrit.payments.models import Discount, Price

if TYPE_CHECKING:
    from dlvrit.payments.gateway import PaymentGateway


@dataclass(frozen=True)
class Quote:
    quantity: int
    unit_amount: int
    currency: str
    subtotal: int
    discount_amount: int = 0

    @property
    def total(self) -> int:
        return self.subtotal - self.discount_amount


def discount_amount(subtotal: int, discount: Optional[Discount]) -> int:
    """Return how much ``discount`` takes off ``subtotal``, never more than the subtotal.

    Percentages round the reduction down so the customer is never charged a
    fraction of a minor unit.
    """
    if discount is None:
        return 0
    if discount.percent_off:
        off = int(subtotal * discount.percent_off) // 100
    elif discount.amount_off:
        off = int(discount.amount_off)
    else:
        off = 0
    return max(0, min(off, subtotal))


def quote(
    quantity: int,
    unit_amount: int,
    currency: str,
    discount: Optional[Discount] = None,
) -> Quote:
    """Price ``quantity`` minutes at ``unit_amount`` minor units each."""
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity < 1:
        raise CheckoutValidationError("Quantity must be a positive whole number")
    if unit_amount < 0:
        raise CheckoutValidationError("Unit amount cannot be negative")

    if discount is not None and discount.amount_off and discount.currency:
        if discount.currency.lower() != currency.lower():
            raise InvalidPromoCodeError()

    subtotal = unit_amount * quantity
    return Quote(
        quantity=quantity,
        unit_amount=unit_amount,
        currency=currency.lower(),
        subtotal=subtotal,
        discount_amount=discount_amount(subtotal, discount),
    )


class PriceResolver:
    """Resolves the per-minute price from settings or from the Stripe catalog."""

    def __init__(self, settings: DlvritSettings, gateway: "PaymentGateway"):
        self.settings = settings
        self.gateway = gateway

    async def resolve(self, product_id: str) -> Price:
        if self.settings.pricing_mode == PricingMode.CATALOG:
            return await self.gateway.get_unit_price(product_id)
        return Price(unit_amount=self.settings.unit_amount, currency=self.settings.currency)
