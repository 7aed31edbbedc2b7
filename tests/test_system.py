"""
Health/status probes, the error envelope and the session cleanup task.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from datetime import timedelta

from fastapi import FastAPI
from fastapi.testclient import TestClient
from httpx import AsyncClient
from sqlalchemy.exc import OperationalError

from conftest import PASSWORD
from workforce.core.database import get_session
from workforce.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    register_error_handlers,
)
from workforce.core.middleware import SECURITY_HEADERS
from workforce.models.base import utcnow
from workforce.tasks import session_cleanup
from workforce_shared.schemas.sessions import LoginRequest


class TestProbes:
    async def test_health(self, client: AsyncClient):
        resp = await client.get("/api/health")
        assert resp.status_code == 200
        assert resp.json() == {"success": True, "status": "ok"}

    async def test_health_has_security_headers(self, client: AsyncClient):
        resp = await client.get("/api/health")
        for header, value in SECURITY_HEADERS.items():
            assert resp.headers.get(header) == value

    async def test_status_reports_database(self, client: AsyncClient):
        resp = await client.get("/api/status")
        assert resp.status_code == 200
        assert resp.json()["database"] == "connected"

    async def test_status_when_database_is_down(self, app, client: AsyncClient):
        class DownSession:
            async def execute(self, *args, **kwargs):
                raise OperationalError("SELECT 1", {}, Exception("connection refused"))

            async def rollback(self):
                pass

        async def _down():
            yield DownSession()

        app.dependency_overrides[get_session] = _down
        resp = await client.get("/api/status")
        assert resp.status_code == 503
        assert resp.json()["database"] == "disconnected"


class TestErrorEnvelope:
    def _make_app(self) -> FastAPI:
        app = FastAPI()
        register_error_handlers(app)

        @app.get("/forbidden")
        async def forbidden():
            raise AuthorizationError("Nope")

        @app.get("/conflict")
        async def conflict():
            raise ConflictError("Taken", code="NAME_TAKEN")

        @app.get("/missing")
        async def missing():
            raise NotFoundError("Gone")

        return app

    def test_app_errors(self):
        client = TestClient(self._make_app())
        assert client.get("/forbidden").json() == {"success": False, "error": "Nope", "code": "FORBIDDEN"}
        resp = client.get("/conflict")
        assert resp.status_code == 409
        assert resp.json()["code"] == "NAME_TAKEN"
        assert client.get("/missing").status_code == 404

    def test_unknown_route(self):
        client = TestClient(self._make_app())
        resp = client.get("/nowhere")
        assert resp.status_code == 404
        assert resp.json() == {"success": False, "error": "Not Found", "code": "NOT_FOUND"}

    def test_method_not_allowed(self):
        client = TestClient(self._make_app())
        resp = client.post("/missing")
        assert resp.status_code == 405
        assert resp.json()["code"] == "METHOD_NOT_ALLOWED"


class TestSessionCleanupTask:
    async def test_expires_overdue_sessions(self, monkeypatch, session_factory, service, world):
        async with session_factory() as session:
            data = await service.create_session(session, LoginRequest(username="alice", password=PASSWORD))
            validation = await service.validate_session(session, data.session_token)
            validation.session.expires_at = utcnow() - timedelta(minutes=1)
            session.add(validation.session)
            await session.commit()

        @asynccontextmanager
        async def _context():
            async with session_factory() as session:
                yield session
                await session.commit()

        monkeypatch.setattr(session_cleanup, "get_session_context", _context)
        count = await session_cleanup.cleanup_expired_sessions({"session_service": service})
        assert count == 1

        async with session_factory() as session:
            assert not (await service.validate_session(session, data.session_token)).is_valid

    def test_worker_settings(self):
        assert session_cleanup.cleanup_expired_sessions in session_cleanup.WorkerSettings.functions
        assert len(session_cleanup.WorkerSettings.cron_jobs) == 1
