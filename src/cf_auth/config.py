"""
Connector configuration.

Values come from the environment (the host app loads .env first):
CF_CLIENT_ID, CF_CLIENT_SECRET, CF_REDIRECT_URI and CF_API_URL are required.
CF_ROOT_CAS is a comma-separated list of PEM files to trust on top of the
system store, CF_INSECURE_SKIP_VERIFY disables certificate checks (dev only)
and CF_HTTP_TIMEOUT sets the per-request timeout in seconds.
"""

import os
from dataclasses import dataclass
from typing import Tuple

from cf_auth.errors import ConfigError

_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class ConnectorConfig:
    client_id: str
    client_secret: str
    redirect_uri: str
    api_url: str
    root_cas: Tuple[str, ...] = ()
    insecure_skip_verify: bool = False
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> "ConnectorConfig":
        """Build a config from CF_* environment variables."""
        required = {
            name: os.getenv(name, "").strip()
            for name in ("CF_CLIENT_ID", "CF_CLIENT_SECRET", "CF_REDIRECT_URI", "CF_API_URL")
        }
        missing = sorted(name for name, value in required.items() if not value)
        if missing:
            raise ConfigError(f"missing required settings: {', '.join(missing)}")

        raw_timeout = os.getenv("CF_HTTP_TIMEOUT", "30")
        try:
            timeout = float(raw_timeout)
        except ValueError as e:
            raise ConfigError(f"CF_HTTP_TIMEOUT is not a number: {raw_timeout!r}") from e

        return cls(
            client_id=required["CF_CLIENT_ID"],
            client_secret=required["CF_CLIENT_SECRET"],
            redirect_uri=required["CF_REDIRECT_URI"],
            api_url=required["CF_API_URL"],
            root_cas=tuple(p.strip() for p in os.getenv("CF_ROOT_CAS", "").split(",") if p.strip()),
            insecure_skip_verify=os.getenv("CF_INSECURE_SKIP_VERIFY", "").strip().lower() in _TRUTHY,
            timeout=timeout,
        )
