"""Payment-side value types shared by the gateway, pricing and checkout."""

from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class Price:
    """A per-minute price in minor currency units."""

    unit_amount: int
    currency: str
    id: Optional[str] = None


@dataclass(frozen=True)
class Discount:
    """A redeemable promotion code and the size of its reduction."""

    id: str
    code: str = ""
    percent_off: Optional[float] = None
    amount_off: Optional[int] = None
    currency: Optional[str] = None


@dataclass
class ChargeRequest:
    amount: int
    currency: str
    payment_method: str
    receipt_email: str
    metadata: dict[str, str] = field(default_factory=dict)
    idempotency_key: Optional[str] = None


@dataclass
class Charge:
    id: str
    amount: int
    currency: str
    status: str


@dataclass
class HostedSessionRequest:
    quantity: int
    currency: str
    customer_email: str
    success_url: str
    cancel_url: str
    price_id: Optional[str] = None
    unit_amount: Optional[int] = None
    product_name: str = "Upload minutes"
    promotion_code_id: Optional[str] = None
    metadata: dict[str, str] = field(default_factory=dict)


@dataclass
class HostedSession:
    id: str
    url: Optional[str] = None
    payment_status: str = ""
    customer_email: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
