"""DLVRIT backend configuration via pydantic-settings."""

import warnings
from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class PaymentMode(str, Enum):
    """How the customer pays: a confirmed PaymentIntent or a hosted Checkout page."""

    CHARGE = "charge"
    HOSTED = "hosted"


class PricingMode(str, Enum):
    FLAT = "flat"
    CATALOG = "catalog"


class ProvisioningMode(str, Enum):
    """How the upload destination is obtained."""

    PACKAGE = "package"
    STATIC_PORTAL = "static_portal"


class DlvritSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DLVRIT_", frozen=True)

    environment: str = "development"
    log_level: str = "INFO"

    # API
    api_title: str = "DLVRIT Backend"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: list[str] = ["*"]
    frontend_url: str = "http://localhost:3000"

    # Flow selection
    payment_mode: PaymentMode = PaymentMode.CHARGE
    pricing_mode: PricingMode = PricingMode.FLAT
    provisioning_mode: ProvisioningMode = ProvisioningMode.PACKAGE

    # Flat-rate pricing, in minor currency units per minute
    currency: str = "gbp"
    unit_amount: int = 16000

    # Stripe
    stripe_secret_key: SecretStr = SecretStr("")
    require_paid_session: bool = True

    # MASV (Massive.io)
    massive_api_key: SecretStr = SecretStr("")
    massive_team_id: str = ""
    massive_api_base: str = "https://api.massive.app/v1"
    massive_portal_url: str = ""
    portal_password: SecretStr = SecretStr("")
    package_name: str = "DLVRIT Upload"
    default_description: str = "Upload package for DLVRIT"

    # Email
    email_provider: str = "smtp"  # smtp, sendgrid, resend; "" only logs, in development
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: SecretStr = SecretStr("")
    smtp_use_tls: bool = False
    email_api_key: SecretStr = SecretStr("")
    email_from: str = "noreply@dlvrit.ai"
    email_from_name: str = "DLVRIT.ai"
    email_bcc: Optional[str] = None

    # Applied to every outbound call (Stripe, MASV, email)
    request_timeout: float = 10.0

    def secret_values(self) -> list[str]:
        """Return the raw secret strings that must never reach a log sink."""
        fields = (
            self.stripe_secret_key,
            self.massive_api_key,
            self.portal_password,
            self.smtp_password,
            self.email_api_key,
        )
        return [f.get_secret_value() for f in fields if f.get_secret_value()]

    def missing_settings(self) -> list[str]:
        """List the settings required by the configured modes that are unset."""
        missing = []
        if not self.stripe_secret_key.get_secret_value():
            missing.append("stripe_secret_key")
        if self.provisioning_mode == ProvisioningMode.PACKAGE:
            if not self.massive_api_key.get_secret_value():
                missing.append("massive_api_key")
            if not self.massive_team_id:
                missing.append("massive_team_id")
        if self.provisioning_mode == ProvisioningMode.STATIC_PORTAL and not self.massive_portal_url:
            missing.append("massive_portal_url")
        if not self.email_provider:
            missing.append("email_provider")
        elif self.email_provider == "smtp" and not self.smtp_host:
            missing.append("smtp_host")
        elif self.email_provider in ("sendgrid", "resend") and not self.email_api_key.get_secret_value():
            missing.append("email_api_key")
        return missing

    def validate_for_production(self) -> None:
        """Raise if required settings are missing outside development."""
        missing = self.missing_settings()
        if not missing:
            return

        env_vars = ", ".join(f"DLVRIT_{f.upper()}" for f in missing)
        if self.environment != "development":
            raise RuntimeError(
                f"Missing required configuration in '{self.environment}' environment: {env_vars}"
            )

        warnings.warn(
            f"Running with incomplete configuration, set {env_vars} before taking payments",
            UserWarning,
            stacklevel=2,
        )


@lru_cache
def get_settings() -> DlvritSettings:
    settings = DlvritSettings()
    settings.validate_for_production()
    return settings
