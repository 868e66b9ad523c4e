"""
Session-based group claim guards and FastAPI dependencies.

Reads the group claims stored by the auth callback and provides dependency
factories for route protection. Claims are opaque strings compared exactly,
e.g. "acme:prod:developer" or an org GUID.

Optional: set GROUPS_REFRESH_INTERVAL_SECONDS to require re-login when the
claims are older than that, and SESSION_MAX_IDLE_SECONDS to treat the user
as inactive after that long without a request (both default 0 = disabled).
"""

import os
import time
from typing import Set

from fastapi import HTTPException, Request


def _env_seconds(name: str) -> int:
    return int(os.getenv(name, "0"))


def get_groups(request: Request) -> Set[str]:
    """Return the group claims stored in the session (empty if not authenticated)."""
    raw = request.session.get("groups", [])
    return set(raw) if isinstance(raw, list) else set()


def is_session_stale(request: Request) -> bool:
    """True when the claims are too old or the user has been idle too long."""
    now = int(time.time())

    refresh = _env_seconds("GROUPS_REFRESH_INTERVAL_SECONDS")
    if refresh > 0 and now - request.session.get("groups_fetched_at", 0) >= refresh:
        return True

    max_idle = _env_seconds("SESSION_MAX_IDLE_SECONDS")
    if max_idle > 0 and now - request.session.get("last_activity_at", now) >= max_idle:
        return True

    return False


def touch_session_activity(request: Request) -> None:
    request.session["last_activity_at"] = int(time.time())


def _active_groups(request: Request) -> Set[str]:
    if "user" not in request.session:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if is_session_stale(request):
        raise HTTPException(status_code=401, detail="Session expired or inactive; please log in again")
    touch_session_activity(request)
    return get_groups(request)


def require_groups(*claims: str):
    """
    Dependency: user must hold ALL of the given group claims.
    Use as: Depends(require_groups("acme:prod:developer")). With no claims
    configured nobody passes.
    """
    required = {c for c in claims if c}

    async def _dep(request: Request):
        groups = _active_groups(request)
        if not required or required - groups:
            raise HTTPException(status_code=403, detail="Forbidden (missing required groups)")
        return True

    return _dep


def require_any_group(*claims: str):
    """Dependency: user must hold at least one of the given group claims."""
    accepted = {c for c in claims if c}

    async def _dep(request: Request):
        if not (accepted & _active_groups(request)):
            raise HTTPException(status_code=403, detail="Forbidden (no acceptable group)")
        return True

    return _dep
