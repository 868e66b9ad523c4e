"""
Data records shared by the connector.

Endpoints is built once by discovery and shared read-only. Everything else is
created per callback from API responses and thrown away afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple


class Role(str, Enum):
    """A user's relationship to a space."""

    DEVELOPER = "developer"
    AUDITOR = "auditor"
    MANAGER = "manager"


@dataclass(frozen=True)
class Scopes:
    """Scopes the host asked for on this login."""

    offline_access: bool = False
    groups: bool = False


@dataclass(frozen=True)
class Endpoints:
    api_url: str
    token_url: str
    authorization_url: str
    userinfo_url: str


@dataclass(frozen=True)
class Resource:
    """One item of a page envelope's ``resources`` list."""

    guid: str
    name: str
    organization_guid: str


@dataclass(frozen=True)
class Page:
    next_url: str
    resources: Tuple[Resource, ...]
    total_results: int


@dataclass(frozen=True)
class Organization:
    name: str
    guid: str


@dataclass(frozen=True)
class Space:
    # The same physical space shows up once per role the user holds in it.
    name: str
    guid: str
    organization_guid: str
    role: Role


@dataclass
class Identity:
    user_id: str = ""
    username: str = ""
    preferred_username: str = ""
    email: str = ""
    email_verified: bool = False
    groups: List[str] = field(default_factory=list)
    connector_data: Optional[bytes] = None
