"""
Group claim synthesis.

For every org the user belongs to: its GUID and its name. For every
role-tagged space: its GUID, "<space guid>:<role>", "<org name>:<space name>"
and "<org name>:<space name>:<role>". Claims are deduplicated and returned
sorted, so the same memberships always give the same list no matter what
order the API returned them in.

A space whose org was not among the fetched orgs gets an empty org name
(":prod", ":prod:developer"). Downstream policies may already match on these
strings, so they are emitted as-is.
"""

from typing import Dict, Iterable, Iterator, List

from cf_auth.models import Organization, Space


class ClaimSet:
    """Insertion-ordered set of claim strings."""

    def __init__(self):
        self._claims: Dict[str, None] = {}

    def add(self, claim: str) -> bool:
        """Add ``claim``; return True if it was not already present."""
        if claim in self._claims:
            return False
        self._claims[claim] = None
        return True

    def sorted(self) -> List[str]:
        return sorted(self._claims)

    def __contains__(self, claim: object) -> bool:
        return claim in self._claims

    def __iter__(self) -> Iterator[str]:
        return iter(self._claims)

    def __len__(self) -> int:
        return len(self._claims)


def build_group_claims(orgs: Iterable[Organization], spaces: Iterable[Space]) -> List[str]:
    claims = ClaimSet()
    org_names: Dict[str, str] = {}
    org_spaces: Dict[str, List[Space]] = {}

    for org in orgs:
        org_names[org.guid] = org.name
        org_spaces[org.name] = []
        claims.add(org.guid)
        claims.add(org.name)

    for space in spaces:
        org_name = org_names.get(space.organization_guid, "")
        org_spaces.setdefault(org_name, []).append(space)
        claims.add(space.guid)
        claims.add(f"{space.guid}:{space.role.value}")

    for org_name, members in org_spaces.items():
        for space in members:
            claims.add(f"{org_name}:{space.name}")
            claims.add(f"{org_name}:{space.name}:{space.role.value}")

    # Python's str ordering is by code point, which matches byte order for UTF-8.
    return claims.sorted()
