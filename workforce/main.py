"""
Workforce API Server

Entry point for the FastAPI application.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from workforce.api import router as api_router
from workforce.core.config import Settings, get_settings
from workforce.core.errors import register_error_handlers
from workforce.core.logs import configure_logging
from workforce.core.middleware import ProtectedRouteMiddleware, SecurityHeadersMiddleware
from workforce.core.redis import RevocationList, close_redis
from workforce.services.sessions import SessionService

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    log.info("workforce.starting", debug=app.state.settings.debug)
    yield
    log.info("workforce.shutting_down")
    await close_redis()


def create_app(
    settings: Optional[Settings] = None,
    revocations: Optional[RevocationList] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_format)

    app = FastAPI(
        title="Workforce",
        description="Multi-tenant workspace: sessions, organizations, service catalog and agents.",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # One session service per process, handed to routes through app.state
    app.state.settings = settings
    app.state.session_service = SessionService(settings, revocations or RevocationList())

    # Middleware (last added runs outermost)
    app.add_middleware(ProtectedRouteMiddleware)
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "PATCH", "PUT", "DELETE"],
        allow_headers=["Content-Type", "Authorization"],
    )

    register_error_handlers(app)
    app.include_router(api_router, prefix="/api")

    return app


app = create_app()
