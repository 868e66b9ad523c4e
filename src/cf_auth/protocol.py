"""
Protocol for login connectors driven by the auth router.

A connector builds the URL that sends the user to the identity provider and
turns the provider's callback into an Identity.
"""

from typing import Protocol, runtime_checkable

from cf_auth.models import Identity, Scopes


@runtime_checkable
class Connector(Protocol):
    """Protocol for a federated login connector (e.g. Cloud Foundry UAA)."""

    name: str

    def login_url(self, scopes: Scopes, callback_url: str, state: str) -> str:
        """Return the authorization URL to redirect the user to."""
        ...

    async def handle_callback(self, scopes: Scopes, request) -> Identity:
        """Handle the OAuth callback request and return the resolved identity."""
        ...
