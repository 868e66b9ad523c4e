"""
Cloud Foundry (UAA) login connector.

Uses Authlib for the OAuth2 authorization-code grant and the Cloud Controller
API to resolve the user's organizations and spaces into group claims.
Endpoints are discovered once when the connector is opened and never change
afterwards, so one connector can serve many concurrent callbacks.
"""

import asyncio
import json
from typing import Any, Dict, Optional, Set

import httpx
from authlib.integrations.httpx_client import AsyncOAuth2Client, OAuthError
from authlib.oauth2.rfc6749.parameters import prepare_grant_uri
from loguru import logger

from cf_auth.claims import build_group_claims
from cf_auth.config import ConnectorConfig
from cf_auth.discovery import discover_endpoints
from cf_auth.errors import (
    ProviderError,
    RedirectURIMismatchError,
    TokenExchangeError,
    UserInfoError,
)
from cf_auth.models import Endpoints, Identity, Scopes
from cf_auth.spaces import fetch_memberships
from cf_auth.transport import client_options, new_http_client

# Scopes sent to UAA regardless of what the host asked for.
SCOPES = ("openid", "cloud_controller.read")

# Identity attribute -> (userinfo key, expected JSON type). A missing or
# mistyped value leaves the attribute at its default.
USERINFO_FIELDS = (
    ("user_id", "user_id", str),
    ("username", "user_name", str),
    ("preferred_username", "user_name", str),
    ("email", "email", str),
    ("email_verified", "email_verified", bool),
)


def decode_userinfo(data: Dict[str, Any]) -> Identity:
    """Build the base Identity from a decoded userinfo object."""
    identity = Identity()
    for attr, key, expected in USERINFO_FIELDS:
        value = data.get(key)
        if isinstance(value, expected):
            setattr(identity, attr, value)
    return identity


# Shielded identity resolutions still running. Holding them here keeps a task
# alive after its caller was cancelled.
_RESOLVING: Set["asyncio.Task[Identity]"] = set()


def _resolution_done(task: "asyncio.Task[Identity]") -> None:
    _RESOLVING.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.opt(exception=exc).error(f"Identity resolution failed: {exc}")


class CloudFoundryConnector:
    """Connector that logs users in through UAA and derives org/space group claims."""

    name: str = "cloudfoundry"

    def __init__(
        self,
        config: ConnectorConfig,
        endpoints: Endpoints,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Use ``open`` to build a connector; this only stores already-discovered state."""
        self.config = config
        self.endpoints = endpoints
        self._client_options = client_options(config, transport)

    @classmethod
    async def open(
        cls, config: ConnectorConfig, transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> "CloudFoundryConnector":
        """Discover endpoints from ``config.api_url`` and return a ready connector."""
        async with new_http_client(config, transport) as client:
            endpoints = await discover_endpoints(client, config.api_url)
        return cls(config, endpoints, transport)

    def _oauth_client(self) -> AsyncOAuth2Client:
        return AsyncOAuth2Client(
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            scope=" ".join(SCOPES),
            redirect_uri=self.config.redirect_uri,
            **self._client_options,
        )

    def _bearer_client(self, access_token: str) -> httpx.AsyncClient:
        # Static bearer token: no expiry check and no refresh.
        return httpx.AsyncClient(headers={"Authorization": f"Bearer {access_token}"}, **self._client_options)

    def login_url(self, scopes: Scopes, callback_url: str, state: str) -> str:
        if callback_url != self.config.redirect_uri:
            logger.warning(f"Rejected login: callback URL {callback_url} is not the configured redirect URI")
            raise RedirectURIMismatchError(callback_url, self.config.redirect_uri)

        return prepare_grant_uri(
            self.endpoints.authorization_url,
            client_id=self.config.client_id,
            response_type="code",
            redirect_uri=self.config.redirect_uri,
            scope=list(SCOPES),
            state=state,
        )

    async def handle_callback(self, scopes: Scopes, request) -> Identity:
        """
        Exchange the callback's code for a token and resolve the user's identity.

        Only the token exchange follows cancellation of the calling task. The
        userinfo fetch and group resolution are shielded and run to completion
        (or to their HTTP timeout) even if the caller goes away; a failure
        after that point is still logged.
        """
        params = request.query_params
        error = params.get("error")
        if error:
            description = params.get("error_description", "")
            logger.warning(f"Identity provider returned error {error}: {description}")
            raise ProviderError(error, description)

        token = await self._exchange_code(params.get("code", ""))

        task = asyncio.ensure_future(self._resolve_identity(scopes, token["access_token"]))
        _RESOLVING.add(task)
        task.add_done_callback(_resolution_done)
        return await asyncio.shield(task)

    async def _exchange_code(self, code: str) -> Dict[str, Any]:
        if not self.endpoints.token_url:
            raise TokenExchangeError("CF connector: failed to get token: no token endpoint was discovered")

        async with self._oauth_client() as client:
            try:
                token = await client.fetch_token(
                    self.endpoints.token_url, grant_type="authorization_code", code=code
                )
            except (OAuthError, httpx.HTTPError, ValueError) as e:
                logger.error(f"Token exchange against {self.endpoints.token_url} failed: {e}")
                raise TokenExchangeError(f"CF connector: failed to get token: {e}") from e

        if not token.get("access_token"):
            raise TokenExchangeError("CF connector: failed to get token: response has no access_token")
        return dict(token)

    async def _fetch_userinfo(self, client: httpx.AsyncClient) -> Identity:
        url = self.endpoints.userinfo_url
        if not url:
            raise UserInfoError("CF connector: no userinfo endpoint was discovered")

        try:
            resp = await client.get(url)
        except httpx.HTTPError as e:
            raise UserInfoError(f"CF connector: failed to execute request to userinfo: {e}") from e

        if resp.status_code != 200:
            raise UserInfoError(f"CF connector: failed to execute request to userinfo: status {resp.status_code}")

        try:
            data = resp.json()
        except ValueError as e:
            raise UserInfoError(f"CF connector: failed to parse userinfo: {e}") from e
        if not isinstance(data, dict):
            raise UserInfoError("CF connector: failed to parse userinfo: not a JSON object")

        return decode_userinfo(data)

    async def _resolve_identity(self, scopes: Scopes, access_token: str) -> Identity:
        async with self._bearer_client(access_token) as client:
            identity = await self._fetch_userinfo(client)
            if scopes.groups:
                orgs, spaces = await fetch_memberships(client, self.endpoints.api_url, identity.user_id)
                identity.groups = build_group_claims(orgs, spaces)

        if scopes.offline_access:
            # Compact separators: the same bytes Go's json.Marshal produced for stored payloads.
            identity.connector_data = json.dumps({"AccessToken": access_token}, separators=(",", ":")).encode("utf-8")

        logger.info(f"Resolved user {identity.user_id} ({identity.username}) with {len(identity.groups)} group claims")
        return identity
