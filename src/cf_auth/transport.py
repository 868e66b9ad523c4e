"""
HTTP client construction for the connector.

TLS trust is the system store plus any configured root CA files, and proxies
are taken from the environment. The options are computed once per connector
and reused for every client it opens.
"""

import ssl
from typing import Any, Dict, Iterable, Optional, Union

import httpx

from cf_auth.config import ConnectorConfig
from cf_auth.errors import ConfigError


def build_verify(root_cas: Iterable[str], insecure_skip_verify: bool) -> Union[ssl.SSLContext, bool]:
    """Return the ``verify`` value for httpx: False, or a context trusting the extra CAs."""
    if insecure_skip_verify:
        return False

    context = ssl.create_default_context()
    for path in root_cas:
        try:
            with open(path, encoding="utf-8") as f:
                pem = f.read()
        except OSError as e:
            raise ConfigError(f"failed to read root-ca: {e}") from e
        if "-----BEGIN CERTIFICATE-----" not in pem:
            raise ConfigError(f"no certs found in root CA file {path!r}")
        try:
            context.load_verify_locations(cadata=pem)
        except ssl.SSLError as e:
            raise ConfigError(f"invalid certs in root CA file {path!r}: {e}") from e
    return context


def client_options(
    config: ConnectorConfig, transport: Optional[httpx.AsyncBaseTransport] = None
) -> Dict[str, Any]:
    """
    Keyword arguments shared by every client the connector opens.

    Both httpx.AsyncClient and Authlib's AsyncOAuth2Client accept them.
    ``transport`` replaces the network, which is how the tests fake the remote APIs.
    """
    options: Dict[str, Any] = {
        "verify": build_verify(config.root_cas, config.insecure_skip_verify),
        "timeout": config.timeout,
        "trust_env": True,
    }
    if transport is not None:
        options["transport"] = transport
    return options


def new_http_client(
    config: ConnectorConfig, transport: Optional[httpx.AsyncBaseTransport] = None
) -> httpx.AsyncClient:
    return httpx.AsyncClient(**client_options(config, transport))
