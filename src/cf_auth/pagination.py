"""
Paginated resource fetcher for the Cloud Controller list endpoints.

Each page is a JSON envelope:
    {"next_url": str | null, "resources": [{"metadata": {"guid": ...},
     "entity": {"name": ..., "organization_guid": ...}}], "total_results": int}

Pages are followed through ``next_url`` until it is empty. The result is all
or nothing: any failed page discards what was already collected. There is no
bound on the number of pages.
"""

from typing import Any, List

import httpx
from loguru import logger

from cf_auth.errors import ResourceFetchError
from cf_auth.models import Page, Resource


def _string(obj: dict, key: str, where: str) -> str:
    value = obj.get(key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ResourceFetchError(f"failed to parse resources: {where}.{key} is not a string")
    return value


def _object(obj: dict, key: str, where: str) -> dict:
    value = obj.get(key)
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ResourceFetchError(f"failed to parse resources: {where}.{key} is not an object")
    return value


def decode_page(body: Any) -> Page:
    """Decode a page envelope; missing fields are empty, mistyped fields are an error."""
    if not isinstance(body, dict):
        raise ResourceFetchError("failed to parse resources: page is not a JSON object")

    raw_resources = body.get("resources") or []
    if not isinstance(raw_resources, list):
        raise ResourceFetchError("failed to parse resources: resources is not a list")

    resources = []
    for i, item in enumerate(raw_resources):
        where = f"resources[{i}]"
        if not isinstance(item, dict):
            raise ResourceFetchError(f"failed to parse resources: {where} is not an object")
        metadata = _object(item, "metadata", where)
        entity = _object(item, "entity", where)
        resources.append(
            Resource(
                guid=_string(metadata, "guid", f"{where}.metadata"),
                name=_string(entity, "name", f"{where}.entity"),
                organization_guid=_string(entity, "organization_guid", f"{where}.entity"),
            )
        )

    total = body.get("total_results") or 0
    if isinstance(total, bool) or not isinstance(total, int):
        raise ResourceFetchError("failed to parse resources: total_results is not an integer")

    return Page(next_url=_string(body, "next_url", "page"), resources=tuple(resources), total_results=total)


async def fetch_resources(client: httpx.AsyncClient, base_url: str, path: str) -> List[Resource]:
    """GET ``base_url + path`` and every following page; return all resources in page order."""
    resources: List[Resource] = []

    while True:
        url = f"{base_url}{path}"
        try:
            resp = await client.get(url)
        except httpx.HTTPError as e:
            raise ResourceFetchError(f"failed to execute request: {e}") from e

        if resp.status_code != 200:
            raise ResourceFetchError(f"unsuccessful status code {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise ResourceFetchError(f"failed to parse resources: {e}") from e

        page = decode_page(body)
        resources.extend(page.resources)
        logger.debug(f"Fetched {len(page.resources)} resources from {url} (total {page.total_results})")

        path = page.next_url
        if not path:
            break

    return resources
