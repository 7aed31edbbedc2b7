"""
Liveness and status probes.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.core.database import get_session, ping

log = structlog.get_logger()
router = APIRouter()


@router.get("/health")
async def health_check():
    """Health check endpoint for liveness probes."""
    return {"success": True, "status": "ok"}


@router.get("/status")
async def status_check(session: AsyncSession = Depends(get_session)):
    """Readiness: reports database connectivity."""
    try:
        connected = await ping(session)
    except (SQLAlchemyError, OSError) as exc:
        log.warning("system.database_unreachable", error=str(exc))
        await session.rollback()
        connected = False

    if not connected:
        return JSONResponse(
            status_code=503,
            content={"success": False, "status": "degraded", "database": "disconnected"},
        )
    return {"success": True, "status": "ready", "database": "connected"}
