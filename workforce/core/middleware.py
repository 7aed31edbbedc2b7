"""
Security middleware: security headers and protected-route token forwarding.
"""

from __future__ import annotations

from enum import Enum

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from workforce.core.auth import SESSION_COOKIE, SESSION_HEADER
from workforce.core.errors import error_response

log = structlog.get_logger()

# ---------------------------------------------------------------------------
# Security Headers
# ---------------------------------------------------------------------------

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "X-XSS-Protection": "0",
    "Referrer-Policy": "strict-origin-when-cross-origin",
    "Permissions-Policy": "camera=(), microphone=(), geolocation=()",
    "Content-Security-Policy": (
        "default-src 'self'; "
        "script-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "style-src 'self' 'unsafe-inline' https://cdn.jsdelivr.net; "
        "img-src 'self' data:; "
        "frame-ancestors 'none';"
    ),
    "Strict-Transport-Security": "max-age=63072000; includeSubDomains; preload",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Attach security headers to every response."""

    async def dispatch(self, request: Request, call_next) -> Response:
        response = await call_next(request)
        for header, value in SECURITY_HEADERS.items():
            response.headers[header] = value
        return response


# ---------------------------------------------------------------------------
# Protected routes
# ---------------------------------------------------------------------------

PUBLIC_API_ROUTES = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/auth/forgot-password",
    "/api/auth/reset-password",
    "/api/health",
    "/api/status",
)

PROTECTED_API_ROUTES = (
    "/api/auth/me",
    "/api/auth/logout",
    "/api/auth/switch-organization",
    "/api/user",
    "/api/organization",
    "/api/admin",
)


class PathClass(str, Enum):
    PUBLIC = "public"
    PROTECTED = "protected"
    UNCLASSIFIED = "unclassified"


def classify_path(
    path: str,
    public: tuple[str, ...] = PUBLIC_API_ROUTES,
    protected: tuple[str, ...] = PROTECTED_API_ROUTES,
) -> PathClass:
    """Literal prefix match; the public list is consulted first and wins."""
    if any(path.startswith(route) for route in public):
        return PathClass.PUBLIC
    if any(path.startswith(route) for route in protected):
        return PathClass.PROTECTED
    return PathClass.UNCLASSIFIED


def _request_token(request: Request) -> str | None:
    token = request.cookies.get(SESSION_COOKIE)
    if token:
        return token
    authorization = request.headers.get("Authorization", "")
    if authorization.startswith("Bearer "):
        return authorization[7:].strip() or None
    return None


class ProtectedRouteMiddleware(BaseHTTPMiddleware):
    """
    Reject protected API requests that carry no session token.

    Only presence is checked here; the token is forwarded in the
    ``x-session-token`` header and revalidated by the route dependency.
    Public and unclassified paths pass through untouched.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        path = request.url.path
        if not path.startswith("/api/"):
            return await call_next(request)

        if classify_path(path) is not PathClass.PROTECTED:
            return await call_next(request)

        token = _request_token(request)
        if not token:
            log.info("middleware.missing_token", path=path)
            return error_response(401, "Authentication required", "MISSING_SESSION_TOKEN")

        headers = [
            (name, value)
            for name, value in request.scope["headers"]
            if name.decode("latin-1").lower() != SESSION_HEADER
        ]
        headers.append((SESSION_HEADER.encode("latin-1"), token.encode("latin-1")))
        request.scope["headers"] = headers
        return await call_next(request)
