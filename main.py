"""
FastAPI app: Cloud Foundry (UAA) OAuth + session-based group claim auth.

Decisions:
- .env is loaded before importing cf_auth so CF_* and SESSION_SECRET are
  available when the connector config is read (Ruff E402 suppressed for that).
- The connector is opened in the lifespan: endpoint discovery runs once and a
  discovery failure stops start-up.
- Routes are guarded by group claim strings, e.g. "<org>:<space>:<role>";
  ADMIN_GROUP and DEVELOPER_GROUP pick the claims for the example routes.
- Session secret from SESSION_SECRET env; default "change-me" is for dev only.
"""

import os
from contextlib import asynccontextmanager

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request
from starlette.middleware.sessions import SessionMiddleware

load_dotenv()

# Load .env before cf_auth so CF_* and SESSION_SECRET are set; Ruff E402.
from cf_auth import (  # noqa: E402
    CloudFoundryConnector,
    ConnectorConfig,
    Scopes,
    create_auth_router,
    require_any_group,
    require_groups,
    touch_session_activity,
)

SESSION_SECRET = os.getenv("SESSION_SECRET", "change-me")

ADMIN_GROUP = os.getenv("ADMIN_GROUP", "")
DEVELOPER_GROUP = os.getenv("DEVELOPER_GROUP", "")

SCOPES = Scopes(groups=True, offline_access=False)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.connector = await CloudFoundryConnector.open(ConnectorConfig.from_env())
    yield


app = FastAPI(lifespan=lifespan)


@app.middleware("http")
async def update_activity(request: Request, call_next):
    """Update last_activity_at for logged-in users so idle timeout is accurate."""
    response = await call_next(request)
    if "user" in request.session:
        touch_session_activity(request)
    return response


# Added last so the session is available to update_activity.
app.add_middleware(SessionMiddleware, secret_key=SESSION_SECRET)
app.include_router(create_auth_router(SCOPES))


@app.get("/")
async def home(request: Request):
    user = request.session.get("user")
    return {"logged_in": bool(user), "user": user}


@app.get("/admin")
async def admin_area(_=Depends(require_groups(ADMIN_GROUP))):
    return {"ok": True, "area": "admin"}


@app.get("/deploy")
async def deploy_area(_=Depends(require_any_group(DEVELOPER_GROUP, ADMIN_GROUP))):
    return {"ok": True, "area": "developer or admin"}
