"""DLVRIT exception hierarchy."""

from typing import Any, Optional


class DlvritError(Exception):
    """Base exception for all DLVRIT errors."""

    status_code = 500

    def __init__(
        self,
        message: str = "",
        code: str = "DLVRIT_ERROR",
        status_code: Optional[int] = None,
    ):
        self.message = message
        self.code = code
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class CheckoutValidationError(DlvritError):
    """Raised when a request is missing a field or carries an invalid one."""

    status_code = 400

    def __init__(self, message: str = "Invalid request"):
        super().__init__(message, code="VALIDATION_ERROR")


class InvalidPromoCodeError(DlvritError):
    """Raised when a promo code has no active match."""

    status_code = 400

    def __init__(self, message: str = "Invalid or expired promo code"):
        super().__init__(message, code="INVALID_PROMO")


class PaymentNotCompletedError(DlvritError):
    """Raised when a hosted checkout session has not been paid."""

    status_code = 402

    def __init__(self, message: str = "Payment has not been completed"):
        super().__init__(message, code="PAYMENT_INCOMPLETE")


class CollaboratorError(DlvritError):
    """Raised when an outbound call to Stripe, MASV or the mail relay fails.

    Carries the collaborator's HTTP status (500 when it reported none) and,
    for diagnostics only, its response headers and body.
    """

    collaborator = "collaborator"
    retriable = False

    def __init__(
        self,
        message: str = "Upstream service failed",
        status_code: Optional[int] = None,
        headers: Optional[dict[str, Any]] = None,
        body: Any = None,
    ):
        super().__init__(message, code="COLLABORATOR_ERROR", status_code=status_code or 500)
        self.headers = headers or {}
        self.body = body


class PaymentError(CollaboratorError):
    collaborator = "payment"


class ProvisioningError(CollaboratorError):
    collaborator = "transfer"


class NotificationError(CollaboratorError):
    collaborator = "email"


class CollaboratorTimeoutError(CollaboratorError):
    """Raised when an outbound call exceeds the configured timeout.

    A timed-out call may still have taken effect upstream; retrying a charge
    is only safe with the same idempotency key.
    """

    retriable = True

    def __init__(self, collaborator: str, timeout: float):
        super().__init__(
            f"{collaborator.capitalize()} service timed out after {timeout:g}s",
            status_code=504,
        )
        self.code = "TIMEOUT"
        self.collaborator = collaborator
