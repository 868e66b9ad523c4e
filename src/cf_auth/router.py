"""
FastAPI auth router: login, callback, /me, logout.

The connector is opened by the application at start-up and kept on
``app.state.connector``; the router only drives it. Group claims resolved at
login are stored in the session for the route guards in cf_auth.session.
"""

import secrets
import time

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, RedirectResponse
from loguru import logger

from cf_auth.errors import CallerError, RemoteError
from cf_auth.models import Scopes
from cf_auth.protocol import Connector

STATE_KEY = "oauth_state"


def get_connector(request: Request) -> Connector:
    return request.app.state.connector


def create_auth_router(scopes: Scopes):
    """Create an APIRouter with /login, /auth/callback, /me, and /logout endpoints."""
    router = APIRouter()

    @router.get("/login")
    async def login(request: Request):
        """Redirect the user to the UAA login page."""
        state = secrets.token_urlsafe(32)
        try:
            url = get_connector(request).login_url(scopes, str(request.url_for("auth_callback")), state)
        except CallerError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        request.session[STATE_KEY] = state
        return RedirectResponse(url=url)

    @router.get("/auth/callback", name="auth_callback")
    async def auth_callback(request: Request):
        """Handle the OAuth callback: resolve the identity, store user and group claims, redirect to /me."""
        expected_state = request.session.pop(STATE_KEY, None)
        if "error" not in request.query_params and (
            not expected_state or request.query_params.get("state") != expected_state
        ):
            return JSONResponse({"error": "state mismatch"}, status_code=400)

        try:
            identity = await get_connector(request).handle_callback(scopes, request)
        except CallerError as e:
            return JSONResponse({"error": str(e)}, status_code=400)
        except RemoteError as e:
            logger.error(f"Login callback failed: {e}")
            return JSONResponse({"error": str(e)}, status_code=502)

        request.session["user"] = {
            "user_id": identity.user_id,
            "username": identity.username,
            "preferred_username": identity.preferred_username,
            "email": identity.email,
            "email_verified": identity.email_verified,
        }
        if scopes.groups:
            request.session["groups"] = identity.groups
            request.session["groups_fetched_at"] = int(time.time())
        return RedirectResponse(url="/me")

    @router.get("/me")
    async def me(request: Request):
        """Return current user and group claims; redirect to /login if not authenticated."""
        if "user" not in request.session:
            return RedirectResponse(url="/login")
        return {
            "user": request.session["user"],
            "group_count": len(request.session.get("groups", [])),
            "groups": request.session.get("groups", []),
            "groups_fetched_at": request.session.get("groups_fetched_at"),
        }

    @router.get("/logout")
    async def logout(request: Request):
        """Clear session and redirect to home."""
        request.session.clear()
        return RedirectResponse(url="/")

    return router
