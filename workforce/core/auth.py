"""
Request authentication and authorization dependencies.

Resolves the session token on each request, validates it through the
SessionService held on ``app.state`` and exposes the caller's organization
context to route handlers:

- ``get_current_session``: any valid session (organization may be unresolved)
- ``require_org_context``: valid session with a resolved organization
- ``require_permission``: organization context plus a named permission
- ``require_platform_admin``: service-catalog workbench access
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.core.database import get_session
from workforce.core.errors import AuthenticationError, AuthorizationError
from workforce.core.permissions import effective_permissions, has_permission
from workforce.models.organization import Organization
from workforce.models.session import UserSession
from workforce.models.user import User
from workforce.models.user_org import UserOrg
from workforce.services.sessions import SessionService, SessionValidation
from workforce_shared.schemas.common import Permission

log = structlog.get_logger()

SESSION_COOKIE = "sessionToken"
REFRESH_COOKIE = "refreshToken"
SESSION_HEADER = "x-session-token"


def extract_session_token(request: Request) -> Optional[str]:
    """Find the session token: forwarded header, then cookie, then bearer."""
    token = request.headers.get(SESSION_HEADER)
    if token:
        return token
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


class AuthContext:
    """Container for a validated session and its organization context."""

    def __init__(
        self,
        token: str,
        session: UserSession,
        user: User,
        org: Optional[Organization],
        membership: Optional[UserOrg],
    ):
        self.token = token
        self.session = session
        self.user = user
        self.org = org
        self.membership = membership
        self.user_id = user.id
        self.org_id: Optional[uuid.UUID] = org.id if org else None
        self.role: Optional[str] = membership.role if membership else None

    @property
    def permissions(self) -> list[str]:
        if self.membership is None:
            return []
        return effective_permissions(self.membership.role, self.membership.permissions)

    def can(self, permission: Permission | str) -> bool:
        if self.membership is None:
            return False
        return has_permission(self.membership.role, permission, self.membership.permissions)


def get_session_service(request: Request) -> SessionService:
    return request.app.state.session_service


async def get_optional_session(
    request: Request,
    db: AsyncSession = Depends(get_session),
    service: SessionService = Depends(get_session_service),
) -> Optional[AuthContext]:
    """Validated session context, or None when there is no usable session."""
    token = extract_session_token(request)
    if not token:
        return None
    validation = await service.validate_session(db, token)
    if not validation.is_valid:
        return None
    return _context(token, validation)


async def get_current_session(
    request: Request,
    db: AsyncSession = Depends(get_session),
    service: SessionService = Depends(get_session_service),
) -> AuthContext:
    """Main authentication dependency. Raises 401 for any invalid session."""
    token = extract_session_token(request)
    if not token:
        raise AuthenticationError("Authentication required", code="MISSING_SESSION_TOKEN")

    validation = await service.validate_session(db, token)
    if not validation.is_valid:
        raise AuthenticationError(validation.reason or "Invalid session", code="INVALID_SESSION")

    auth = _context(token, validation)
    request.state.auth = auth
    return auth


def _context(token: str, validation: SessionValidation) -> AuthContext:
    return AuthContext(
        token=token,
        session=validation.session,
        user=validation.user,
        org=validation.current_org,
        membership=validation.membership,
    )


# ---------------------------------------------------------------------------
# Authorization dependencies
# ---------------------------------------------------------------------------

async def require_org_context(
    auth: AuthContext = Depends(get_current_session),
) -> AuthContext:
    """Session must have a resolved, active organization."""
    if auth.org is None or auth.membership is None:
        raise AuthorizationError("No organization context", code="NO_ORGANIZATION_CONTEXT")
    return auth


def require_permission(permission: Permission):
    """Dependency factory: organization context plus ``permission``."""

    async def _check(auth: AuthContext = Depends(require_org_context)) -> AuthContext:
        if not auth.can(permission):
            log.info(
                "auth.permission_denied",
                user_id=str(auth.user_id),
                org_id=str(auth.org_id),
                permission=permission.value,
            )
            raise AuthorizationError(
                f"Permission '{permission.value}' required",
                code="INSUFFICIENT_PERMISSIONS",
            )
        return auth

    return _check


async def require_platform_admin(
    auth: AuthContext = Depends(get_current_session),
) -> AuthContext:
    """Requires the platform administrator flag on the user."""
    if not auth.user.is_platform_admin:
        raise AuthorizationError("Platform administrator access required")
    return auth
