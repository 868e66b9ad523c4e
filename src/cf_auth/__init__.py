"""
Cloud Foundry login connector.

Exposes the connector (CloudFoundryConnector), its configuration and data
records, the group claim builder (build_group_claims), session guards
(get_groups, require_*), and the FastAPI auth router factory (create_auth_router).
"""

from .claims import ClaimSet, build_group_claims
from .cloudfoundry import CloudFoundryConnector
from .config import ConnectorConfig
from .errors import (
    CallerError,
    ConfigError,
    ConnectorError,
    DiscoveryError,
    RemoteError,
)
from .models import Endpoints, Identity, Organization, Role, Scopes, Space
from .router import create_auth_router
from .session import (
    get_groups,
    is_session_stale,
    require_any_group,
    require_groups,
    touch_session_activity,
)

__all__ = [
    "CloudFoundryConnector",
    "ConnectorConfig",
    "Scopes",
    "Identity",
    "Endpoints",
    "Organization",
    "Space",
    "Role",
    "ClaimSet",
    "build_group_claims",
    "ConnectorError",
    "ConfigError",
    "DiscoveryError",
    "CallerError",
    "RemoteError",
    "get_groups",
    "is_session_stale",
    "require_groups",
    "require_any_group",
    "touch_session_activity",
    "create_auth_router",
]
