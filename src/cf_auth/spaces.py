"""
Organization and role-scoped space lookups for a user.

Spaces are fetched once per role from the role's list endpoint and tagged
with that role. The merged list keeps role order (developer, auditor,
manager) and page order within a role. A space the user holds several roles
in appears once per role.
"""

from typing import List, Tuple

import httpx

from cf_auth.errors import GroupResolutionError, ResourceFetchError
from cf_auth.models import Organization, Role, Space
from cf_auth.pagination import fetch_resources

ROLE_PATHS: Tuple[Tuple[Role, str], ...] = (
    (Role.DEVELOPER, "/v3/users/{user_id}/spaces"),
    (Role.AUDITOR, "/v3/users/{user_id}/audited_spaces"),
    (Role.MANAGER, "/v3/users/{user_id}/managed_spaces"),
)
ORGS_PATH = "/v3/users/{user_id}/organizations"


async def fetch_orgs(client: httpx.AsyncClient, base_url: str, path: str) -> List[Organization]:
    resources = await fetch_resources(client, base_url, path)
    return [Organization(name=r.name, guid=r.guid) for r in resources]


async def fetch_role_spaces(client: httpx.AsyncClient, base_url: str, path: str, role: Role) -> List[Space]:
    resources = await fetch_resources(client, base_url, path)
    return [
        Space(name=r.name, guid=r.guid, organization_guid=r.organization_guid, role=role)
        for r in resources
    ]


async def fetch_memberships(
    client: httpx.AsyncClient, base_url: str, user_id: str
) -> Tuple[List[Organization], List[Space]]:
    """
    Return (organizations, spaces) for ``user_id``.

    Requests run one after another. Any failed fetch aborts the whole lookup
    with a GroupResolutionError naming the fetch.
    """
    try:
        orgs = await fetch_orgs(client, base_url, ORGS_PATH.format(user_id=user_id))
    except ResourceFetchError as e:
        raise GroupResolutionError("organizations", e) from e

    spaces: List[Space] = []
    for role, template in ROLE_PATHS:
        try:
            spaces.extend(await fetch_role_spaces(client, base_url, template.format(user_id=user_id), role))
        except ResourceFetchError as e:
            raise GroupResolutionError(f"spaces for {role.value} role", e) from e

    return orgs, spaces
