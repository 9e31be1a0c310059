"""Tests for upload provisioning — MASV packages and static portal links."""

import json
from urllib.parse import parse_qs, urlsplit

import httpx
import pytest

from dlvrit.common.config import ProvisioningMode
from dlvrit.common.exceptions import CollaboratorTimeoutError, ProvisioningError
from dlvrit.transfer.massive_client import MassiveClient
from dlvrit.transfer.provisioner import (
    PackageProvisioner,
    StaticPortalProvisioner,
    UploadDestination,
    build_provisioner,
    portal_base,
)


def _masv(handler) -> MassiveClient:
    return MassiveClient(
        api_key="masv-key",
        team_id="team_1",
        transport=httpx.MockTransport(handler),
    )


# ── MASV client ──

class TestMassiveClient:
    async def test_posts_package_with_api_key(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["api_key"] = request.headers["X-API-KEY"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(201, json={"id": "pkg_1", "upload_url": "https://u/1"})

        data = await _masv(handler).create_package(
            name="DLVRIT Upload",
            description="Trailer Cut",
            sender="a@b.com",
            recipients=["a@b.com"],
        )
        assert seen["url"] == "https://api.massive.app/v1/teams/team_1/packages"
        assert seen["api_key"] == "masv-key"
        assert seen["body"] == {
            "description": "Trailer Cut",
            "name": "DLVRIT Upload",
            "sender": "a@b.com",
            "recipients": [{"email": "a@b.com"}],
        }
        assert data["upload_url"] == "https://u/1"

    async def test_http_error_carries_status_and_message(self):
        def handler(request):
            return httpx.Response(403, json={"message": "Invalid API key"})

        with pytest.raises(ProvisioningError) as exc:
            await _masv(handler).create_package("n", "d", "a@b.com", ["a@b.com"])
        assert exc.value.status_code == 403
        assert exc.value.message == "Invalid API key"

    async def test_http_error_without_message(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(ProvisioningError) as exc:
            await _masv(handler).create_package("n", "d", "a@b.com", ["a@b.com"])
        assert exc.value.status_code == 502
        assert "502" in exc.value.message

    async def test_timeout_is_distinct_error(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(CollaboratorTimeoutError) as exc:
            await _masv(handler).create_package("n", "d", "a@b.com", ["a@b.com"])
        assert exc.value.status_code == 504
        assert exc.value.retriable is True

    async def test_connection_failure(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(ProvisioningError) as exc:
            await _masv(handler).create_package("n", "d", "a@b.com", ["a@b.com"])
        assert exc.value.status_code == 500


# ── Package provisioner ──

class TestPackageProvisioner:
    async def test_uses_upload_url(self):
        client = _masv(lambda r: httpx.Response(200, json={"id": "pkg_1", "upload_url": "https://u/1"}))
        dest = await PackageProvisioner(client, portal_host="portal.example").provision("a@b.com", "Cut")
        assert dest.url == "https://u/1"
        assert dest.package_id == "pkg_1"

    async def test_templates_access_token_onto_portal(self):
        client = _masv(lambda r: httpx.Response(200, json={"id": "pkg_1", "access_token": "tok_secret"}))
        dest = await PackageProvisioner(client, portal_host="portal.example").provision("a@b.com", "Cut")
        assert dest.url == "https://portal.example/upload/tok_secret"
        assert dest.access_token == "tok_secret"

    async def test_missing_url_and_token_fails(self):
        client = _masv(lambda r: httpx.Response(200, json={"id": "pkg_1"}))
        with pytest.raises(ProvisioningError) as exc:
            await PackageProvisioner(client, portal_host="portal.example").provision("a@b.com", "Cut")
        assert exc.value.message == "Transfer service did not return an upload URL"
        assert exc.value.status_code == 500

    async def test_non_object_response_fails(self):
        client = _masv(lambda r: httpx.Response(200, json=["https://u/1"]))
        with pytest.raises(ProvisioningError) as exc:
            await PackageProvisioner(client, portal_host="portal.example").provision("a@b.com", "Cut")
        assert exc.value.message == "Transfer service returned an unexpected response"

    async def test_blank_project_uses_default_description(self):
        seen = {}

        def handler(request):
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"upload_url": "https://u/1"})

        provisioner = PackageProvisioner(_masv(handler), portal_host="p", default_description="Default pkg")
        await provisioner.provision("a@b.com", "   ")
        assert seen["body"]["description"] == "Default pkg"

    def test_access_token_not_in_repr(self):
        dest = UploadDestination(url="https://u", access_token="tok_secret")
        assert "tok_secret" not in repr(dest)


# ── Static portal ──

class TestStaticPortal:
    async def test_trailer_cut_url(self):
        dest = await StaticPortalProvisioner("dlvrit.portal.massive.io").provision("a@b.com", "Trailer Cut")
        assert dest.url == "https://dlvrit.portal.massive.io/?name=Trailer%20Cut&email=a%40b.com"
        query = parse_qs(urlsplit(dest.url).query)
        assert query == {"name": ["Trailer Cut"], "email": ["a@b.com"]}
        assert dest.access_token is None

    def test_host_with_scheme_kept(self):
        url = StaticPortalProvisioner("http://localhost:8000/").build_url("a@b.com", "X")
        assert url.startswith("http://localhost:8000/?")

    def test_special_characters_encoded(self):
        url = StaticPortalProvisioner("p.example").build_url("x+y@b.com", "A&B=C")
        assert parse_qs(urlsplit(url).query) == {"name": ["A&B=C"], "email": ["x+y@b.com"]}

    def test_portal_base(self):
        assert portal_base("portal.example/") == "https://portal.example"


class TestBuildProvisioner:
    def test_package_mode(self, settings):
        assert isinstance(build_provisioner(settings), PackageProvisioner)

    def test_static_mode(self, settings):
        static = settings.model_copy(update={"provisioning_mode": ProvisioningMode.STATIC_PORTAL})
        assert isinstance(build_provisioner(static), StaticPortalProvisioner)
