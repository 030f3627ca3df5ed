"""Authentication routes for the Fitout API.

Routes:
- POST /api/admin-auth  - Admin login
- POST /api/client-auth - Client (unit) login
- POST /api/logout      - Logout and clear session
"""

from __future__ import annotations

from fastapi import APIRouter, Cookie, HTTPException, Request
from fastapi.responses import JSONResponse

from fitout.config import get_config
from fitout.core import audit_logger
from fitout.core.audit_logger import log_action
from fitout.web.auth import (
    SESSION_COOKIE,
    create_session,
    validate_session,
    verify_client_credentials,
    verify_credentials,
    verify_credentials_db,
)
from fitout.web.auth import logout as auth_logout
from fitout.web.models import LoginRequest

router = APIRouter(tags=["authentication"])


def _session_response(content: dict, session_token: str) -> JSONResponse:
    response = JSONResponse(content)
    response.set_cookie(
        key=SESSION_COOKIE,
        value=session_token,
        httponly=True,
        max_age=get_config().auth.session_expiry_hours * 3600,
        samesite="lax",
    )
    return response


@router.post("/api/admin-auth")
async def admin_login(request: Request, credentials: LoginRequest):
    """Admin login: database admins first, then the environment admin."""
    username = credentials.username.strip()

    is_valid, user = await verify_credentials_db(username, credentials.password)
    if is_valid:
        session_token = create_session(username, role=user.role, user_id=str(user.id))
        await log_action(
            request, audit_logger.ADMIN_LOGIN, username,
            resource_type="system", details={"method": "db"},
        )
        return _session_response({"success": True, "username": username}, session_token)

    if verify_credentials(username, credentials.password):
        session_token = create_session(username, role="admin")
        await log_action(
            request, audit_logger.ADMIN_LOGIN, username,
            resource_type="system", details={"method": "env"},
        )
        return _session_response({"success": True, "username": username}, session_token)

    await log_action(request, audit_logger.ADMIN_LOGIN_FAILED, username, resource_type="system")
    raise HTTPException(status_code=401, detail="Invalid credentials")


@router.post("/api/client-auth")
async def client_login(request: Request, credentials: LoginRequest):
    """Client login with the unit's generated credentials.

    Returns the portal token that authorises the unit's selection wizard.
    """
    unit = await verify_client_credentials(credentials.username, credentials.password)
    if unit is None:
        await log_action(
            request, audit_logger.CLIENT_LOGIN_FAILED, credentials.username, resource_type="unit"
        )
        raise HTTPException(status_code=401, detail="Invalid username or password")

    session_token = create_session(unit.username, role="client", unit_id=str(unit.id))
    await log_action(
        request, audit_logger.CLIENT_LOGIN, unit.username,
        resource_type="unit", resource_id=str(unit.id),
    )
    return _session_response(
        {
            "success": True,
            "token": unit.access_token,
            "unit_id": str(unit.id),
            "unit_number": unit.unit_number,
        },
        session_token,
    )


@router.post("/api/logout")
async def logout(session: str | None = Cookie(default=None)):
    """Invalidate the session and clear the cookie."""
    session_data = validate_session(session)
    auth_logout(session)

    response = JSONResponse(
        {"success": True, "username": session_data["username"] if session_data else None}
    )
    response.delete_cookie(SESSION_COOKIE)
    return response
