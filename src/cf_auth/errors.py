"""
Connector error hierarchy.

Caller input errors (CallerError) are kept apart from remote-system failures
(RemoteError) so the host can redisplay the login page for the former and
alert or retry for the latter. Nothing in this package retries on its own.
"""


class ConnectorError(Exception):
    """Base class for every error raised by the connector."""


class ConfigError(ConnectorError):
    """Connector configuration is missing or unusable."""


class DiscoveryError(ConnectorError):
    """Endpoint discovery failed; the connector cannot be constructed."""


class CallerError(ConnectorError):
    """The caller supplied bad input (user-facing, not an infrastructure fault)."""


class RedirectURIMismatchError(CallerError):
    def __init__(self, callback_url: str, redirect_uri: str):
        super().__init__(
            f"expected callback URL {callback_url!r} did not match the URL in the config {redirect_uri!r}"
        )
        self.callback_url = callback_url
        self.redirect_uri = redirect_uri


class ProviderError(CallerError):
    """The identity provider redirected back with an ``error`` parameter."""

    def __init__(self, error: str, description: str):
        super().__init__(description)
        self.error = error
        self.description = description


class RemoteError(ConnectorError):
    """A remote call made while handling a callback failed."""


class TokenExchangeError(RemoteError):
    pass


class UserInfoError(RemoteError):
    pass


class ResourceFetchError(RemoteError):
    """A page of a paginated resource list could not be fetched or decoded."""


class GroupResolutionError(RemoteError):
    """Wraps a ResourceFetchError with the name of the fetch that failed."""

    def __init__(self, fetch: str, cause: Exception):
        super().__init__(f"failed to fetch {fetch}: {cause}")
        self.fetch = fetch
