"""
CheckoutClient SDK: sync client for the DLVRIT backend.

Used by scripts, the CLI and server-side integrations that place orders
without going through the browser frontend.
"""

import json
import uuid
from dataclasses import dataclass
from typing import Any, Optional

import httpx


@dataclass
class ClientCheckoutResult:
    """Result of create_checkout_session() or confirm_checkout()."""

    success: bool
    upload_url: Optional[str] = None
    checkout_url: Optional[str] = None
    session_id: Optional[str] = None
    idempotency_key: Optional[str] = None
    status_code: int = 0
    error: str = ""


@dataclass
class ClientPromoResult:
    valid: bool
    percent_off: float = 0
    amount_off: int = 0
    error: str = ""


class CheckoutClient:
    """
    Synchronous HTTP client for the DLVRIT backend.

    Each call is a single attempt. Checkout calls always send an
    Idempotency-Key and return it, so retrying an order with the same key
    cannot double-charge.
    """

    def __init__(self, server_url: str = "http://localhost:3000", timeout: float = 30):
        self.server_url = server_url.rstrip("/")
        self._http = httpx.Client(base_url=self.server_url, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "CheckoutClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> tuple[int, dict[str, Any]]:
        """Return (status, JSON body); transport failures come back as status 0."""
        try:
            resp = self._http.request(method, path, **kwargs)
        except httpx.TimeoutException:
            return 0, {"error": "Request timed out"}
        except httpx.HTTPError as e:
            return 0, {"error": f"Connection failed: {e}"}

        try:
            data = resp.json()
        except json.JSONDecodeError:
            return resp.status_code, {"error": "Invalid JSON response"}
        if not isinstance(data, dict):
            return resp.status_code, {"error": "Unexpected response shape"}
        return resp.status_code, data

    # ── Checkout ──

    def create_checkout_session(
        self,
        product_id: str,
        quantity: int,
        email: str,
        payment_method: Optional[str] = None,
        project: Optional[str] = None,
        promo: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> ClientCheckoutResult:
        key = idempotency_key or uuid.uuid4().hex
        body: dict[str, Any] = {"product_id": product_id, "quantity": quantity, "email": email}
        if payment_method:
            body["payment_method"] = payment_method
        if project:
            body["project"] = project
        if promo:
            body["promo"] = promo

        status, data = self._request(
            "POST",
            "/create-checkout-session",
            json=body,
            headers={"Idempotency-Key": key},
        )
        if status != 200:
            return ClientCheckoutResult(
                success=False,
                idempotency_key=key,
                status_code=status,
                error=data.get("error", f"HTTP {status}"),
            )
        return ClientCheckoutResult(
            success=True,
            upload_url=data.get("uploadUrl"),
            checkout_url=data.get("url"),
            session_id=data.get("sessionId"),
            idempotency_key=key,
            status_code=status,
        )

    def confirm_checkout(self, session_id: str) -> ClientCheckoutResult:
        status, data = self._request("POST", "/checkout-success", json={"session_id": session_id})
        if status != 200:
            return ClientCheckoutResult(
                success=False,
                session_id=session_id,
                status_code=status,
                error=data.get("error", f"HTTP {status}"),
            )
        return ClientCheckoutResult(
            success=True,
            upload_url=data.get("uploadUrl"),
            session_id=session_id,
            status_code=status,
        )

    # ── Promo codes ──

    def validate_promo_code(self, code: str) -> ClientPromoResult:
        status, data = self._request("POST", "/validate-promo-code", json={"promo": code})
        if status != 200:
            return ClientPromoResult(valid=False, error=data.get("error", f"HTTP {status}"))
        return ClientPromoResult(
            valid=bool(data.get("valid")),
            percent_off=data.get("percent_off") or 0,
            amount_off=data.get("amount_off") or 0,
        )

    def health(self) -> dict[str, Any]:
        status, data = self._request("GET", "/health")
        if status != 200:
            return {"status": "unreachable", "error": data.get("error", f"HTTP {status}")}
        return data
