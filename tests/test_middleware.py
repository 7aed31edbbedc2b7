"""
Tests for the security headers and protected-route middleware.
"""

from __future__ import annotations

import pytest
from fastapi import FastAPI, Request
from fastapi.testclient import TestClient

from workforce.core.middleware import (
    PROTECTED_API_ROUTES,
    PUBLIC_API_ROUTES,
    SECURITY_HEADERS,
    PathClass,
    ProtectedRouteMiddleware,
    SecurityHeadersMiddleware,
    classify_path,
)


# ---------------------------------------------------------------------------
# Unit Tests: path classification
# ---------------------------------------------------------------------------

class TestClassifyPath:
    @pytest.mark.parametrize("path", PUBLIC_API_ROUTES)
    def test_public_routes(self, path):
        assert classify_path(path) is PathClass.PUBLIC

    @pytest.mark.parametrize("path", PROTECTED_API_ROUTES)
    def test_protected_routes(self, path):
        assert classify_path(path) is PathClass.PROTECTED

    @pytest.mark.parametrize(
        "path",
        ["/api/user/profile", "/api/organization/123/roles", "/api/admin/services", "/api/auth/me"],
    )
    def test_prefix_match(self, path):
        assert classify_path(path) is PathClass.PROTECTED

    @pytest.mark.parametrize("path", ["/api/services", "/api/agents", "/api/auth/refresh", "/dashboard"])
    def test_unclassified(self, path):
        assert classify_path(path) is PathClass.UNCLASSIFIED

    def test_public_wins_when_both_match(self):
        result = classify_path("/api/shared/thing", public=("/api/shared",), protected=("/api/shared",))
        assert result is PathClass.PUBLIC


# ---------------------------------------------------------------------------
# Integration Tests: Middleware
# ---------------------------------------------------------------------------

class TestSecurityHeadersMiddleware:
    def test_headers_present(self):
        app = FastAPI()
        app.add_middleware(SecurityHeadersMiddleware)

        @app.get("/test")
        async def test_endpoint():
            return {"ok": True}

        client = TestClient(app)
        resp = client.get("/test")
        assert resp.status_code == 200
        for header, value in SECURITY_HEADERS.items():
            assert resp.headers.get(header) == value


class TestProtectedRouteMiddleware:
    def _make_app(self) -> FastAPI:
        app = FastAPI()
        app.add_middleware(ProtectedRouteMiddleware)

        def _echo(request: Request) -> dict:
            return {"forwarded": request.headers.get("x-session-token")}

        @app.get("/api/health")
        async def health(request: Request):
            return _echo(request)

        @app.get("/api/user/profile")
        async def profile(request: Request):
            return _echo(request)

        @app.get("/api/services")
        async def services(request: Request):
            return _echo(request)

        @app.get("/dashboard")
        async def dashboard(request: Request):
            return _echo(request)

        return app

    def test_public_path_passes_without_token(self):
        client = TestClient(self._make_app())
        resp = client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"forwarded": None}

    def test_protected_path_without_token(self):
        client = TestClient(self._make_app())
        resp = client.get("/api/user/profile")
        assert resp.status_code == 401
        assert resp.json() == {
            "success": False,
            "error": "Authentication required",
            "code": "MISSING_SESSION_TOKEN",
        }

    def test_bearer_token_is_forwarded(self):
        client = TestClient(self._make_app())
        resp = client.get("/api/user/profile", headers={"Authorization": "Bearer tok-123"})
        assert resp.status_code == 200
        assert resp.json() == {"forwarded": "tok-123"}

    def test_cookie_token_is_forwarded(self):
        client = TestClient(self._make_app(), cookies={"sessionToken": "cookie-tok"})
        resp = client.get("/api/user/profile")
        assert resp.status_code == 200
        assert resp.json() == {"forwarded": "cookie-tok"}

    def test_client_supplied_header_is_replaced(self):
        client = TestClient(self._make_app())
        resp = client.get(
            "/api/user/profile",
            headers={"Authorization": "Bearer real", "x-session-token": "spoofed"},
        )
        assert resp.json() == {"forwarded": "real"}

    def test_client_supplied_header_alone_is_not_a_token(self):
        client = TestClient(self._make_app())
        resp = client.get("/api/user/profile", headers={"x-session-token": "spoofed"})
        assert resp.status_code == 401

    def test_unclassified_path_is_untouched(self):
        client = TestClient(self._make_app())
        resp = client.get("/api/services", headers={"Authorization": "Bearer tok"})
        assert resp.status_code == 200
        assert resp.json() == {"forwarded": None}

    def test_non_api_path_is_untouched(self):
        client = TestClient(self._make_app())
        resp = client.get("/dashboard")
        assert resp.status_code == 200
