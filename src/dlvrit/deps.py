"""Dependency injection singletons for the DLVRIT backend."""

from dlvrit.common.config import get_settings
from dlvrit.checkout.service import CheckoutService
from dlvrit.notifications.email_delivery import EmailSender
from dlvrit.payments.gateway import PaymentGateway, StripeGateway
from dlvrit.payments.promo import PromoCodeValidator
from dlvrit.transfer.provisioner import UploadProvisioner, build_provisioner

_gateway: PaymentGateway | None = None
_provisioner: UploadProvisioner | None = None
_email_sender: EmailSender | None = None
_promo_validator: PromoCodeValidator | None = None
_checkout: CheckoutService | None = None


def get_payment_gateway() -> PaymentGateway:
    global _gateway
    if _gateway is None:
        settings = get_settings()
        _gateway = StripeGateway(
            api_key=settings.stripe_secret_key.get_secret_value(),
            timeout=settings.request_timeout,
        )
    return _gateway


def get_provisioner() -> UploadProvisioner:
    global _provisioner
    if _provisioner is None:
        _provisioner = build_provisioner(get_settings())
    return _provisioner


def get_email_sender() -> EmailSender:
    global _email_sender
    if _email_sender is None:
        settings = get_settings()
        _email_sender = EmailSender(
            provider=settings.email_provider,
            from_email=settings.email_from,
            from_name=settings.email_from_name,
            smtp_host=settings.smtp_host,
            smtp_port=settings.smtp_port,
            smtp_user=settings.smtp_user,
            smtp_password=settings.smtp_password.get_secret_value(),
            smtp_use_tls=settings.smtp_use_tls,
            api_key=settings.email_api_key.get_secret_value(),
            timeout=settings.request_timeout,
        )
    return _email_sender


def get_promo_validator() -> PromoCodeValidator:
    global _promo_validator
    if _promo_validator is None:
        _promo_validator = PromoCodeValidator(get_payment_gateway())
    return _promo_validator


def get_checkout_service() -> CheckoutService:
    global _checkout
    if _checkout is None:
        _checkout = CheckoutService(
            get_settings(),
            gateway=get_payment_gateway(),
            provisioner=get_provisioner(),
            email_sender=get_email_sender(),
            promo_validator=get_promo_validator(),
        )
    return _checkout


def reset_singletons() -> None:
    """Reset all singletons (for testing)."""
    global _gateway, _provisioner, _email_sender, _promo_validator, _checkout
    _gateway = None
    _provisioner = None
    _email_sender = None
    _promo_validator = None
    _checkout = None
