"""Pydantic schemas for checkout endpoints."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class OrderRequest(BaseModel):
    """Body of POST /create-checkout-session."""

    payment_method: Optional[str] = None
    product_id: str = Field(..., min_length=1)
    quantity: int = Field(..., strict=True, ge=1)
    email: str = Field(..., min_length=3, max_length=254)
    project: Optional[str] = Field(default=None, max_length=200)
    promo: Optional[str] = Field(default=None, max_length=100)

    @field_validator("product_id", "email")
    @classmethod
    def _strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def _looks_like_email(cls, v: str) -> str:
        local, _, domain = v.rpartition("@")
        if not local or not domain or " " in v:
            raise ValueError("must be a valid email address")
        return v

    @field_validator("payment_method", "project", "promo")
    @classmethod
    def _blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        return v or None


class CheckoutResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    upload_url: str = Field(..., alias="uploadUrl")


class HostedCheckoutResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    url: Optional[str] = None
    session_id: str = Field(..., alias="sessionId")


class CheckoutSuccessRequest(BaseModel):
    session_id: str = Field(..., min_length=1)


class PromoCodeRequest(BaseModel):
    promo: str = Field(default="", max_length=100)


class PromoCodeResponse(BaseModel):
    valid: bool
    percent_off: Optional[float] = None
    amount_off: Optional[int] = None
