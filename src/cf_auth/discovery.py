"""
Endpoint discovery.

The Cloud Controller's /v2/info names the UAA server, and UAA's OIDC discovery
document names the token, authorization and userinfo endpoints. Any failure
here is fatal: the connector cannot run without its endpoints.
"""

from typing import Any, Dict

import httpx
from loguru import logger

from cf_auth.errors import DiscoveryError
from cf_auth.models import Endpoints


async def _get_json(client: httpx.AsyncClient, url: str, what: str) -> Dict[str, Any]:
    try:
        resp = await client.get(url)
    except httpx.HTTPError as e:
        logger.error(f"Failed to send request to {what} at {url}: {e}")
        raise DiscoveryError(f"failed to send request to {what}: {e}") from e

    if resp.status_code != 200:
        logger.error(f"{what} at {url} answered with status {resp.status_code}")
        raise DiscoveryError(f"{what} request failed with status {resp.status_code}")

    try:
        body = resp.json()
    except ValueError as e:
        logger.error(f"Failed to decode response from {what}: {e}")
        raise DiscoveryError(f"failed to decode response from {what}: {e}") from e

    if not isinstance(body, dict):
        raise DiscoveryError(f"response from {what} is not a JSON object")
    return body


def _optional_str(doc: Dict[str, Any], key: str) -> str:
    value = doc.get(key)
    return value if isinstance(value, str) else ""


async def discover_endpoints(client: httpx.AsyncClient, api_url: str) -> Endpoints:
    """Resolve the connector's endpoints starting from the Cloud Controller API URL."""
    api_url = api_url.rstrip("/")
    info = await _get_json(client, f"{api_url}/v2/info", "cloud controller info")

    uaa_url = info.get("authorization_endpoint")
    if not isinstance(uaa_url, str) or not uaa_url:
        raise DiscoveryError("cloud controller info has no authorization_endpoint")
    uaa_url = uaa_url.rstrip("/")

    # Missing endpoints degrade to "" and surface later as configuration errors.
    oidc = await _get_json(client, f"{uaa_url}/.well-known/openid-configuration", "uaa openid configuration")
    endpoints = Endpoints(
        api_url=api_url,
        token_url=_optional_str(oidc, "token_endpoint"),
        authorization_url=_optional_str(oidc, "authorization_endpoint"),
        userinfo_url=_optional_str(oidc, "userinfo_endpoint"),
    )
    logger.info(f"Discovered endpoints via {uaa_url}: token={endpoints.token_url} userinfo={endpoints.userinfo_url}")
    return endpoints
