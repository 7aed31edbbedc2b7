"""
Authentication endpoints.

- Login / registration (public)
- Session management: me, refresh, logout, active-session listing
- Organization switching
- Organization guard decisions for front-end navigation
"""

from __future__ import annotations

from datetime import datetime
from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.core.auth import (
    REFRESH_COOKIE,
    SESSION_COOKIE,
    AuthContext,
    extract_session_token,
    get_current_session,
    get_optional_session,
    get_session_service,
)
from workforce.core.config import get_settings
from workforce.core.database import get_session
from workforce.core.guard import SessionState, decide
from workforce.models.base import utcnow
from workforce.services import users as user_service
from workforce.services.sessions import SessionService, org_summary
from workforce_shared.schemas.sessions import (
    DeviceInfo,
    GuardDecisionResponse,
    GuardRequest,
    LoginRequest,
    RefreshRequest,
    SessionInfo,
    SessionResponse,
    SwitchOrganizationRequest,
)
from workforce_shared.schemas.users import RegisterRequest

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()

REFRESH_COOKIE_PATH = "/api/auth"


def _cookie_kwargs(path: str, expires_at: Optional[datetime]) -> dict:
    kwargs = {
        "httponly": True,
        "secure": not settings.debug,  # allow non-HTTPS in dev
        "samesite": "strict",
        "path": path,
    }
    if expires_at is not None:
        kwargs["max_age"] = max(0, int((expires_at - utcnow()).total_seconds()))
    return kwargs


def _set_session_cookies(response: Response, data: SessionResponse) -> None:
    response.set_cookie(
        key=SESSION_COOKIE,
        value=data.session_token,
        **_cookie_kwargs("/", data.expires_at),
    )
    if data.refresh_token:
        response.set_cookie(
            key=REFRESH_COOKIE,
            value=data.refresh_token,
            **_cookie_kwargs(REFRESH_COOKIE_PATH, None),
        )


def _clear_session_cookies(response: Response) -> None:
    response.delete_cookie(SESSION_COOKIE, path="/")
    response.delete_cookie(REFRESH_COOKIE, path=REFRESH_COOKIE_PATH)


def _device(request: Request) -> DeviceInfo:
    return DeviceInfo(
        user_agent=request.headers.get("user-agent"),
        ip=request.client.host if request.client else None,
        platform=request.headers.get("sec-ch-ua-platform"),
    )


# ---------------------------------------------------------------------------
# Login & registration
# ---------------------------------------------------------------------------

@router.post("/login")
async def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
    service: SessionService = Depends(get_session_service),
):
    """Authenticate with username or email and receive a session."""
    data = await service.create_session(session, body, _device(request))
    _set_session_cookies(response, data)
    return {"success": True, "message": "Login successful", "data": data}


@router.post("/register", status_code=201)
async def register(
    body: RegisterRequest,
    session: AsyncSession = Depends(get_session),
):
    """Register a new user with a personal organization."""
    user, org = await user_service.register_user(body, session)
    return {
        "success": True,
        "message": "Registration successful",
        "data": {
            "user_id": str(user.id),
            "username": user.username,
            "email": user.email,
            "organization": org_summary(org),
        },
    }


# ---------------------------------------------------------------------------
# Session management
# ---------------------------------------------------------------------------

@router.get("/me")
async def me(
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
    service: SessionService = Depends(get_session_service),
):
    """The current session: user, organization context and permissions."""
    data = await service.build_session_response(
        session, auth.session, auth.user, auth.org, auth.membership, include_refresh=False
    )
    return {"success": True, "data": data}


@router.post("/refresh")
async def refresh(
    request: Request,
    response: Response,
    body: Optional[RefreshRequest] = None,
    session: AsyncSession = Depends(get_session),
    service: SessionService = Depends(get_session_service),
):
    """Rotate the session and refresh tokens."""
    refresh_token = (body.refresh_token if body else None) or request.cookies.get(REFRESH_COOKIE)
    data = await service.refresh_session(session, refresh_token)
    _set_session_cookies(response, data)
    return {"success": True, "message": "Session refreshed", "data": data}


@router.post("/logout")
async def logout(
    request: Request,
    response: Response,
    session: AsyncSession = Depends(get_session),
    service: SessionService = Depends(get_session_service),
):
    """Revoke the current session. Always succeeds and clears the cookies."""
    token = extract_session_token(request)
    message = "Logout successful"
    try:
        await service.revoke_session(session, token)
        await session.commit()
    except Exception:
        log.exception("auth.logout_revoke_failed")
        await session.rollback()
        message = "Logout completed"

    _clear_session_cookies(response)
    return {"success": True, "message": message}


@router.get("/sessions")
async def list_sessions(
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
    service: SessionService = Depends(get_session_service),
):
    """Active sessions of the current user; tokens are never returned."""
    rows = await service.list_active_sessions(session, auth.user_id)
    return {
        "success": True,
        "data": [
            {
                **SessionInfo(
                    id=row.id,
                    type=row.type,
                    current_org_id=row.current_org_id,
                    created_at=row.created_at,
                    expires_at=row.expires_at,
                    last_access_at=row.last_access_at,
                    device=row.device,
                ).model_dump(mode="json"),
                "current": row.id == auth.session.id,
            }
            for row in rows
        ],
    }


# ---------------------------------------------------------------------------
# Organization switching
# ---------------------------------------------------------------------------

@router.get("/switch-organization")
async def available_organizations(
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
    service: SessionService = Depends(get_session_service),
):
    """Current organization and the organizations the user may switch to."""
    data = await service.build_session_response(
        session, auth.session, auth.user, auth.org, auth.membership, include_refresh=False
    )
    return {
        "success": True,
        "data": {
            "current_organization": data.current_org,
            "available_organizations": data.available_orgs,
            "can_switch_organizations": len(data.available_orgs) > 1,
        },
    }


@router.post("/switch-organization")
async def switch_organization(
    body: SwitchOrganizationRequest,
    request: Request,
    session: AsyncSession = Depends(get_session),
    service: SessionService = Depends(get_session_service),
):
    """Switch the session's current organization."""
    token = extract_session_token(request)
    data = await service.switch_organization(session, token, body.organization_id)
    return {"success": True, "message": "Organization switched successfully", "data": data}


# ---------------------------------------------------------------------------
# Guard
# ---------------------------------------------------------------------------

@router.post("/guard", response_model=GuardDecisionResponse)
async def guard(
    body: GuardRequest,
    auth: Optional[AuthContext] = Depends(get_optional_session),
):
    """Render-or-redirect decision for a front-end navigation."""
    state = SessionState(is_valid=auth is not None, has_org=auth is not None and auth.org is not None)
    exclusions = body.exclude_paths if body.exclude_paths is not None else settings.guard_exclude_paths
    decision = decide(
        body.pathname,
        state,
        exclusions,
        login_path=settings.login_path,
        error_path=settings.org_error_path,
    )
    return GuardDecisionResponse(
        action=decision.action,
        redirect_to=decision.redirect_to,
        reason=decision.reason,
    )
