"""Upload-destination provisioning: MASV packages or a static portal URL."""

import logging
from dataclasses import dataclass, field
from typing import Optional, Protocol
from urllib.parse import quote, urlencode

from dlvrit.common.config import DlvritSettings, ProvisioningMode
from dlvrit.common.exceptions import ProvisioningError
from dlvrit.transfer.massive_client import MassiveClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UploadDestination:
    """Where the customer uploads; ``access_token`` is a bearer secret."""

    url: str
    package_id: Optional[str] = None
    access_token: Optional[str] = field(default=None, repr=False)


class UploadProvisioner(Protocol):
    async def provision(self, email: str, project: Optional[str]) -> UploadDestination: ...


def portal_base(host: str) -> str:
    """Normalise a configured portal host into an https base URL."""
    host = host.strip().rstrip("/")
    if host.startswith(("http://", "https://")):
        return host
    return f"https://{host}"


class PackageProvisioner:
    """Creates a MASV package per order and derives its upload link."""

    def __init__(
        self,
        client: MassiveClient,
        portal_host: str,
        package_name: str = "DLVRIT Upload",
        default_description: str = "Upload package for DLVRIT",
    ):
        self.client = client
        self.portal_host = portal_host
        self.package_name = package_name
        self.default_description = default_description

    async def provision(self, email: str, project: Optional[str]) -> UploadDestination:
        description = (project or "").strip() or self.default_description
        data = await self.client.create_package(
            name=self.package_name,
            description=description,
            sender=email,
            recipients=[email],
        )

        if not isinstance(data, dict):
            logger.error("MASV returned %s instead of a package object", type(data).__name__)
            raise ProvisioningError("Transfer service returned an unexpected response")

        upload_url = data.get("upload_url")
        access_token = data.get("access_token")
        if not upload_url and access_token and self.portal_host:
            upload_url = f"{portal_base(self.portal_host)}/upload/{access_token}"

        if not upload_url:
            logger.error("MASV response had no upload_url or access_token (keys: %s)", sorted(data))
            raise ProvisioningError("Transfer service did not return an upload URL")

        return UploadDestination(
            url=upload_url,
            package_id=data.get("id"),
            access_token=access_token,
        )


class StaticPortalProvisioner:
    """Builds a portal link from the project and email; no external call."""

    def __init__(self, portal_host: str):
        self.portal_host = portal_host

    def build_url(self, email: str, project: Optional[str]) -> str:
        query = urlencode({"name": (project or "").strip(), "email": email}, quote_via=quote)
        return f"{portal_base(self.portal_host)}/?{query}"

    async def provision(self, email: str, project: Optional[str]) -> UploadDestination:
        return UploadDestination(url=self.build_url(email, project))


def build_provisioner(settings: DlvritSettings) -> UploadProvisioner:
    if settings.provisioning_mode == ProvisioningMode.STATIC_PORTAL:
        return StaticPortalProvisioner(settings.massive_portal_url)

    client = MassiveClient(
        api_key=settings.massive_api_key.get_secret_value(),
        team_id=settings.massive_team_id,
        base_url=settings.massive_api_base,
        timeout=settings.request_timeout,
    )
    return PackageProvisioner(
        client,
        portal_host=settings.massive_portal_url,
        package_name=settings.package_name,
        default_description=settings.default_description,
    )
