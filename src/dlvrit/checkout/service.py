"""CheckoutService: payment, upload provisioning and email for one order."""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Optional

from dlvrit.checkout.schemas import OrderRequest
from dlvrit.common.config import DlvritSettings, PaymentMode, ProvisioningMode
from dlvrit.common.exceptions import (
    CheckoutValidationError,
    DlvritError,
    NotificationError,
    PaymentNotCompletedError,
)
from dlvrit.notifications.email_delivery import EmailMessage, EmailSender, render_upload_email
from dlvrit.payments.gateway import PaymentGateway
from dlvrit.payments.models import ChargeRequest, Discount, HostedSessionRequest
from dlvrit.payments.pricing import PriceResolver, Quote, quote
from dlvrit.payments.promo import PromoCodeValidator
from dlvrit.transfer.provisioner import UploadDestination, UploadProvisioner

logger = logging.getLogger(__name__)


@dataclass
class CheckoutResult:
    upload_url: str
    charge_id: Optional[str] = None
    session_id: Optional[str] = None
    success: bool = True


@dataclass
class HostedCheckoutResult:
    session_id: str
    url: Optional[str] = None


def new_idempotency_key() -> str:
    """Key for a charge whose client sent no Idempotency-Key; unique per request."""
    return f"dlvrit-{uuid.uuid4().hex}"


class CheckoutService:
    """Orchestrates a checkout.

    Direct charges provision the upload destination before capturing payment,
    so a provider failure never leaves a paid order without a link. The email
    goes out only once both payment and provisioning have succeeded, and a
    failed email fails the request.
    """

    def __init__(
        self,
        settings: DlvritSettings,
        gateway: PaymentGateway,
        provisioner: UploadProvisioner,
        email_sender: EmailSender,
        promo_validator: Optional[PromoCodeValidator] = None,
    ):
        self.settings = settings
        self.gateway = gateway
        self.provisioner = provisioner
        self.email_sender = email_sender
        self.promo_validator = promo_validator or PromoCodeValidator(gateway)
        self.prices = PriceResolver(settings, gateway)

    async def create_checkout_session(
        self,
        order: OrderRequest,
        idempotency_key: Optional[str] = None,
    ) -> CheckoutResult | HostedCheckoutResult:
        if self.settings.payment_mode == PaymentMode.HOSTED:
            return await self.start_hosted_checkout(order)
        return await self.charge(order, idempotency_key=idempotency_key)

    async def _price_order(self, order: OrderRequest) -> tuple[Quote, Optional[str], Optional[Discount]]:
        discount = None
        if order.promo:
            discount = await self.promo_validator.resolve(order.promo)

        price = await self.prices.resolve(order.product_id)
        order_quote = quote(order.quantity, price.unit_amount, price.currency, discount)
        return order_quote, price.id, discount

    def _metadata(self, order: OrderRequest, discount: Optional[Discount]) -> dict[str, str]:
        metadata = {
            "product_id": order.product_id,
            "quantity": str(order.quantity),
            "email": order.email,
            "project": order.project or "",
        }
        if discount is not None:
            metadata["promotion_code"] = discount.id
        return metadata

    async def charge(
        self,
        order: OrderRequest,
        idempotency_key: Optional[str] = None,
    ) -> CheckoutResult:
        """Direct-charge flow: price, provision, charge, then email."""
        if not order.payment_method:
            raise CheckoutValidationError("payment_method is required")

        order_quote, _, discount = await self._price_order(order)
        if order_quote.total <= 0:
            raise CheckoutValidationError("Order total must be greater than zero")
        logger.info(
            "Checkout: product=%s quantity=%s amount=%s %s",
            order.product_id, order.quantity, order_quote.total, order_quote.currency,
        )

        destination = await self.provisioner.provision(order.email, order.project)

        metadata = self._metadata(order, discount)
        if destination.package_id:
            metadata["upload_package_id"] = destination.package_id

        charge = await self.gateway.create_charge(
            ChargeRequest(
                amount=order_quote.total,
                currency=order_quote.currency,
                payment_method=order.payment_method,
                receipt_email=order.email,
                metadata=metadata,
                idempotency_key=idempotency_key or new_idempotency_key(),
            )
        )
        logger.info("Charge %s captured", charge.id)

        await self._notify(order.email, order.project, order.quantity, destination)
        return CheckoutResult(upload_url=destination.url, charge_id=charge.id)

    async def start_hosted_checkout(self, order: OrderRequest) -> HostedCheckoutResult:
        """Hosted flow: create a Checkout Session; fulfilment happens in confirm_checkout."""
        order_quote, price_id, discount = await self._price_order(order)
        frontend = self.settings.frontend_url.rstrip("/")

        session = await self.gateway.create_hosted_session(
            HostedSessionRequest(
                quantity=order.quantity,
                currency=order_quote.currency,
                customer_email=order.email,
                success_url=f"{frontend}/success?session_id={{CHECKOUT_SESSION_ID}}",
                cancel_url=f"{frontend}/cancel",
                price_id=price_id,
                unit_amount=order_quote.unit_amount,
                product_name=order.project or "Upload minutes",
                promotion_code_id=discount.id if discount else None,
                metadata=self._metadata(order, discount),
            )
        )
        logger.info("Hosted checkout session %s created", session.id)
        return HostedCheckoutResult(session_id=session.id, url=session.url)

    async def confirm_checkout(self, session_id: str) -> CheckoutResult:
        """Fulfil a completed hosted checkout: provision and email."""
        session = await self.gateway.retrieve_session(session_id)

        if self.settings.require_paid_session and session.payment_status != "paid":
            logger.warning(
                "Session %s not paid (payment_status=%s)", session.id, session.payment_status
            )
            raise PaymentNotCompletedError()

        metadata: dict[str, Any] = session.metadata
        email = session.customer_email or metadata.get("email")
        if not email:
            raise CheckoutValidationError("Checkout session has no customer email")

        try:
            quantity = int(metadata.get("quantity", 0))
        except (TypeError, ValueError):
            quantity = 0
        if quantity < 1:
            raise CheckoutValidationError("Checkout session has no valid quantity")

        project = metadata.get("project") or None
        destination = await self.provisioner.provision(email, project)
        await self._notify(email, project, quantity, destination)
        return CheckoutResult(upload_url=destination.url, session_id=session.id)

    async def _notify(
        self,
        email: str,
        project: Optional[str],
        quantity: int,
        destination: UploadDestination,
    ) -> None:
        password = None
        if self.settings.provisioning_mode == ProvisioningMode.STATIC_PORTAL:
            password = self.settings.portal_password.get_secret_value() or None

        subject, body = render_upload_email(project, quantity, destination.url, password)
        try:
            sent = await self.email_sender.send(
                EmailMessage(to=email, subject=subject, html=body, bcc=self.settings.email_bcc)
            )
        except DlvritError:
            logger.error("Upload link email to %s failed after successful payment", email)
            raise

        if not sent and self.settings.environment != "development":
            logger.error("No email provider configured; upload link for %s was not delivered", email)
            raise NotificationError("Email delivery is not configured")
