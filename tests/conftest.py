"""
Shared fixtures: an in-memory Cloud Foundry (Cloud Controller + UAA) served
through httpx.MockTransport, plus a connector opened against it.
"""

from __future__ import annotations

from urllib.parse import parse_qs

import httpx
import pytest
import pytest_asyncio
from starlette.requests import Request

from cf_auth import CloudFoundryConnector, ConnectorConfig
from cf_auth.models import Endpoints

API_URL = "https://api.cf.example"
UAA_URL = "https://uaa.cf.example"
REDIRECT_URI = "http://testserver/auth/callback"
ACCESS_TOKEN = "tok-123"
USER_ID = "user-1"

ENDPOINTS = Endpoints(
    api_url=API_URL,
    token_url=f"{UAA_URL}/oauth/token",
    authorization_url=f"{UAA_URL}/oauth/authorize",
    userinfo_url=f"{UAA_URL}/userinfo",
)


def org_resource(guid: str, name: str) -> dict:
    return {"metadata": {"guid": guid}, "entity": {"name": name}}


def space_resource(guid: str, name: str, org_guid: str) -> dict:
    return {"metadata": {"guid": guid}, "entity": {"name": name, "organization_guid": org_guid}}


def callback_request(query: str) -> Request:
    """Build the request the IdP redirects back with."""
    return Request(
        {
            "type": "http",
            "method": "GET",
            "path": "/auth/callback",
            "query_string": query.encode(),
            "headers": [],
        }
    )


class FakeCloudFoundry:
    """Routes requests for the API and UAA hosts and records every request seen."""

    def __init__(self):
        self.requests: list[httpx.Request] = []
        self.info_status = 200
        self.info = {"authorization_endpoint": UAA_URL + "/"}
        self.oidc_status = 200
        self.oidc = {
            "token_endpoint": f"{UAA_URL}/oauth/token",
            "authorization_endpoint": f"{UAA_URL}/oauth/authorize",
            "userinfo_endpoint": f"{UAA_URL}/userinfo",
        }
        self.token_status = 200
        self.token = {"access_token": ACCESS_TOKEN, "token_type": "bearer", "expires_in": 3600}
        self.userinfo_status = 200
        self.userinfo = {
            "user_id": USER_ID,
            "user_name": "jdoe",
            "email": "jdoe@example.com",
            "email_verified": True,
        }
        self.pages: dict[str, tuple[int, object]] = {}
        self.fail_transport_on: str | None = None
        self.token_form: dict[str, list[str]] = {}

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def add_list(self, path: str, *pages: list) -> None:
        """Serve ``pages`` as a chain: path, path?page=2, ... with next_url links."""
        total = sum(len(p) for p in pages)
        for i, resources in enumerate(pages):
            key = path if i == 0 else f"{path}?page={i + 1}"
            next_url = f"{path}?page={i + 2}" if i + 1 < len(pages) else None
            self.pages[key] = (200, {"next_url": next_url, "resources": resources, "total_results": total})

    def add_user_lists(
        self,
        orgs: list | None = None,
        developer: list | None = None,
        auditor: list | None = None,
        manager: list | None = None,
    ) -> None:
        base = f"/v3/users/{USER_ID}"
        self.add_list(f"{base}/organizations", orgs or [])
        self.add_list(f"{base}/spaces", developer or [])
        self.add_list(f"{base}/audited_spaces", auditor or [])
        self.add_list(f"{base}/managed_spaces", manager or [])

    def paths(self) -> list[str]:
        return [r.url.raw_path.decode() for r in self.requests]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.raw_path.decode()
        if self.fail_transport_on and path == self.fail_transport_on:
            raise httpx.ConnectError("connection refused", request=request)

        if request.url.host == "api.cf.example":
            if path == "/v2/info":
                return httpx.Response(self.info_status, json=self.info)
            if path in self.pages:
                status, body = self.pages[path]
                return httpx.Response(status, json=body)
            return httpx.Response(404, json={"error": "not found"})

        if request.url.host == "uaa.cf.example":
            if path == "/.well-known/openid-configuration":
                return httpx.Response(self.oidc_status, json=self.oidc)
            if path == "/oauth/token":
                self.token_form = parse_qs(request.content.decode())
                return httpx.Response(self.token_status, json=self.token)
            if path == "/userinfo":
                if request.headers.get("Authorization") != f"Bearer {ACCESS_TOKEN}":
                    return httpx.Response(401, json={"error": "unauthorized"})
                return httpx.Response(self.userinfo_status, json=self.userinfo)

        return httpx.Response(404)


@pytest.fixture
def fake_cf() -> FakeCloudFoundry:
    return FakeCloudFoundry()


@pytest.fixture
def config() -> ConnectorConfig:
    return ConnectorConfig(
        client_id="cf-client",
        client_secret="s3cret",
        redirect_uri=REDIRECT_URI,
        api_url=API_URL + "/",
    )


@pytest_asyncio.fixture
async def connector(fake_cf, config) -> CloudFoundryConnector:
    return await CloudFoundryConnector.open(config, transport=fake_cf.transport)
