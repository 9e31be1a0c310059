"""Shared test fixtures for the DLVRIT backend."""

from typing import Optional

import pytest
from httpx import ASGITransport, AsyncClient

from dlvrit.common.exceptions import NotificationError
from dlvrit.payments.models import (
    Charge,
    ChargeRequest,
    Discount,
    HostedSession,
    HostedSessionRequest,
    Price,
)
from dlvrit.transfer.provisioner import UploadDestination

PORTAL_HOST = "dlvrit.portal.massive.io"
PORTAL_PASSWORD = "portal-pass-123"


class FakeGateway:
    """In-memory PaymentGateway recording every call."""

    def __init__(self):
        self.charges: list[ChargeRequest] = []
        self.sessions: list[HostedSessionRequest] = []
        self.promotions: dict[str, Discount] = {}
        self.catalog: dict[str, Price] = {}
        self.stored_sessions: dict[str, HostedSession] = {}
        self.charge_error: Optional[Exception] = None

    async def get_unit_price(self, product_id: str) -> Price:
        return self.catalog[product_id]

    async def create_charge(self, request: ChargeRequest) -> Charge:
        if self.charge_error is not None:
            raise self.charge_error
        self.charges.append(request)
        return Charge(
            id=f"pi_{len(self.charges)}",
            amount=request.amount,
            currency=request.currency,
            status="succeeded",
        )

    async def create_hosted_session(self, request: HostedSessionRequest) -> HostedSession:
        self.sessions.append(request)
        session_id = f"cs_test_{len(self.sessions)}"
        return HostedSession(id=session_id, url=f"https://checkout.stripe.test/{session_id}")

    async def retrieve_session(self, session_id: str) -> HostedSession:
        return self.stored_sessions[session_id]

    async def find_promotion_code(self, code: str) -> Optional[Discount]:
        return self.promotions.get(code)

    async def get_discount(self, promotion_code_id: str) -> Discount:
        for discount in self.promotions.values():
            if discount.id == promotion_code_id:
                return discount
        raise KeyError(promotion_code_id)


class FakeProvisioner:
    def __init__(self, url: str = "https://dlvrit.portal.massive.io/upload/tok_abc"):
        self.url = url
        self.calls: list[tuple[str, Optional[str]]] = []
        self.error: Optional[Exception] = None

    async def provision(self, email: str, project: Optional[str]) -> UploadDestination:
        if self.error is not None:
            raise self.error
        self.calls.append((email, project))
        return UploadDestination(url=self.url, package_id="pkg_1", access_token="tok_abc")


class FakeEmailSender:
    def __init__(self):
        self.sent = []
        self.fail = False

    async def send(self, message) -> bool:
        if self.fail:
            raise NotificationError("Email delivery failed: 550")
        self.sent.append(message)
        return True


def _configure_env(monkeypatch, **overrides: str) -> None:
    env = {
        "DLVRIT_ENVIRONMENT": "development",
        "DLVRIT_STRIPE_SECRET_KEY": "sk_test_dummy",
        "DLVRIT_MASSIVE_API_KEY": "masv-test-key",
        "DLVRIT_MASSIVE_TEAM_ID": "team_1",
        "DLVRIT_MASSIVE_PORTAL_URL": PORTAL_HOST,
        "DLVRIT_PORTAL_PASSWORD": PORTAL_PASSWORD,
        "DLVRIT_EMAIL_PROVIDER": "",
        "DLVRIT_PAYMENT_MODE": "charge",
        "DLVRIT_PRICING_MODE": "flat",
        "DLVRIT_PROVISIONING_MODE": "package",
    }
    env.update(overrides)
    for name, value in env.items():
        monkeypatch.setenv(name, value)


@pytest.fixture
def settings(monkeypatch):
    from dlvrit.common.config import DlvritSettings, get_settings

    _configure_env(monkeypatch)
    get_settings.cache_clear()
    return DlvritSettings()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def provisioner():
    return FakeProvisioner()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def env_overrides():
    return {}


@pytest.fixture
def app(monkeypatch, env_overrides, gateway, provisioner, email_sender):
    """Create a test app with fake collaborators injected."""
    _configure_env(monkeypatch, **env_overrides)

    from dlvrit.common.config import get_settings
    get_settings.cache_clear()

    from dlvrit.deps import reset_singletons
    reset_singletons()

    from dlvrit.app import create_app
    from dlvrit.checkout.service import CheckoutService
    from dlvrit.deps import get_checkout_service, get_promo_validator
    from dlvrit.payments.promo import PromoCodeValidator

    application = create_app()
    service = CheckoutService(get_settings(), gateway, provisioner, email_sender)
    application.dependency_overrides[get_checkout_service] = lambda: service
    application.dependency_overrides[get_promo_validator] = lambda: PromoCodeValidator(gateway)
    return application


@pytest.fixture
async def client(app):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def order_body():
    return {
        "payment_method": "pm_card_visa",
        "product_id": "prod_minutes",
        "quantity": 5,
        "email": "a@b.com",
        "project": "Trailer Cut",
    }
