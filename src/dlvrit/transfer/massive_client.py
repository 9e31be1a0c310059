"""HTTP client for creating upload packages in MASV (Massive.io)."""

import logging
from typing import Any, Optional

import httpx

from dlvrit.common.exceptions import CollaboratorTimeoutError, ProvisioningError

logger = logging.getLogger(__name__)


class MassiveClient:
    """Calls MASV's /teams/{team_id}/packages endpoint."""

    def __init__(
        self,
        api_key: str,
        team_id: str,
        base_url: str = "https://api.massive.app/v1",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.team_id = team_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    async def create_package(
        self,
        name: str,
        description: str,
        sender: str,
        recipients: list[str],
    ) -> dict[str, Any]:
        """Create a package and return MASV's JSON response.

        The response carries ``upload_url`` and/or ``access_token``; the token is
        a bearer secret and is never logged.
        """
        url = f"{self.base_url}/teams/{self.team_id}/packages"
        payload = {
            "description": description,
            "name": name,
            "sender": sender,
            "recipients": [{"email": r} for r in recipients],
        }
        logger.info("Creating MASV package %r for %s", name, sender)

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                resp = await client.post(
                    url,
                    json=payload,
                    headers={"X-API-KEY": self.api_key},
                )
                resp.raise_for_status()
            except httpx.TimeoutException:
                raise CollaboratorTimeoutError("transfer", self.timeout) from None
            except httpx.HTTPStatusError as e:
                body = _json_or_text(e.response)
                logger.error(
                    "MASV package creation failed: status=%s headers=%s body=%s",
                    e.response.status_code,
                    dict(e.response.headers),
                    body,
                )
                message = body.get("message") if isinstance(body, dict) else None
                raise ProvisioningError(
                    message or f"Transfer service returned {e.response.status_code}",
                    status_code=e.response.status_code,
                    headers=dict(e.response.headers),
                    body=body,
                ) from e
            except httpx.HTTPError as e:
                logger.error("MASV request failed: %s", e)
                raise ProvisioningError(f"Transfer service unreachable: {e}") from e

        try:
            return resp.json()
        except ValueError as e:
            raise ProvisioningError("Transfer service returned invalid JSON") from e


def _json_or_text(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text
