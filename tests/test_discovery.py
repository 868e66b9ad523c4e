"""Tests for endpoint discovery."""

import httpx
import pytest

from cf_auth.discovery import discover_endpoints
from cf_auth.errors import DiscoveryError
from cf_auth.models import Endpoints
from tests.conftest import API_URL, UAA_URL


async def _discover(fake_cf, api_url=API_URL + "/"):
    async with httpx.AsyncClient(transport=fake_cf.transport) as client:
        return await discover_endpoints(client, api_url)


@pytest.mark.asyncio
async def test_resolves_endpoints_through_uaa(fake_cf):
    endpoints = await _discover(fake_cf)

    assert endpoints == Endpoints(
        api_url=API_URL,
        token_url=f"{UAA_URL}/oauth/token",
        authorization_url=f"{UAA_URL}/oauth/authorize",
        userinfo_url=f"{UAA_URL}/userinfo",
    )
    assert [str(r.url) for r in fake_cf.requests] == [
        f"{API_URL}/v2/info",
        f"{UAA_URL}/.well-known/openid-configuration",
    ]


@pytest.mark.asyncio
async def test_missing_oidc_fields_become_empty(fake_cf):
    fake_cf.oidc = {"authorization_endpoint": f"{UAA_URL}/oauth/authorize", "userinfo_endpoint": 12}

    endpoints = await _discover(fake_cf)

    assert endpoints.token_url == ""
    assert endpoints.userinfo_url == ""
    assert endpoints.authorization_url == f"{UAA_URL}/oauth/authorize"


@pytest.mark.asyncio
async def test_info_failure_is_fatal(fake_cf):
    fake_cf.info_status = 503

    with pytest.raises(DiscoveryError, match="status 503"):
        await _discover(fake_cf)
    assert len(fake_cf.requests) == 1


@pytest.mark.asyncio
async def test_oidc_failure_is_fatal(fake_cf):
    fake_cf.oidc_status = 404

    with pytest.raises(DiscoveryError, match="uaa openid configuration request failed with status 404"):
        await _discover(fake_cf)


@pytest.mark.asyncio
async def test_info_without_authorization_endpoint(fake_cf):
    fake_cf.info = {"name": "cf"}

    with pytest.raises(DiscoveryError, match="authorization_endpoint"):
        await _discover(fake_cf)


@pytest.mark.asyncio
async def test_transport_error_is_fatal(fake_cf):
    fake_cf.fail_transport_on = "/v2/info"

    with pytest.raises(DiscoveryError, match="failed to send request"):
        await _discover(fake_cf)
