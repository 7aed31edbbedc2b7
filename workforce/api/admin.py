"""
Service catalog workbench (platform administrators only).

GET   /api/admin/services                       All services, inactive included
POST  /api/admin/services                       Create a service
GET   /api/admin/services/{service_id}          Service detail
PATCH /api/admin/services/{service_id}          Update a service
POST  /api/admin/services/{service_id}/toggle-status
"""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.core.auth import AuthContext, require_platform_admin
from workforce.core.config import get_settings
from workforce.core.database import get_session
from workforce.services import catalog
from workforce_shared.schemas.services import (
    ServiceCreateRequest,
    ServiceListQuery,
    ServiceListResponse,
    ServiceResponse,
    ServiceToggleStatusRequest,
    ServiceUpdateRequest,
)

settings = get_settings()
router = APIRouter()


@router.get("/services", response_model=ServiceListResponse)
async def list_services(
    query: Annotated[ServiceListQuery, Query()],
    auth: AuthContext = Depends(require_platform_admin),
    session: AsyncSession = Depends(get_session),
):
    query.include_inactive = True
    return await catalog.list_services(query, session, max_page_size=settings.max_page_size)


@router.post("/services", status_code=201)
async def create_service(
    body: ServiceCreateRequest,
    auth: AuthContext = Depends(require_platform_admin),
    session: AsyncSession = Depends(get_session),
):
    service = await catalog.create_service(body, session)
    return {"success": True, "data": ServiceResponse.model_validate(service)}


@router.get("/services/{service_id}")
async def get_service(
    service_id: uuid.UUID,
    auth: AuthContext = Depends(require_platform_admin),
    session: AsyncSession = Depends(get_session),
):
    service = await catalog.get_service(str(service_id), session, include_inactive=True)
    return {"success": True, "data": ServiceResponse.model_validate(service)}


@router.patch("/services/{service_id}")
async def update_service(
    service_id: uuid.UUID,
    body: ServiceUpdateRequest,
    auth: AuthContext = Depends(require_platform_admin),
    session: AsyncSession = Depends(get_session),
):
    service = await catalog.get_service(str(service_id), session, include_inactive=True)
    service = await catalog.update_service(service, body, session)
    return {"success": True, "data": ServiceResponse.model_validate(service)}


@router.post("/services/{service_id}/toggle-status")
async def toggle_service_status(
    service_id: uuid.UUID,
    body: ServiceToggleStatusRequest,
    auth: AuthContext = Depends(require_platform_admin),
    session: AsyncSession = Depends(get_session),
):
    service = await catalog.get_service(str(service_id), session, include_inactive=True)
    service = await catalog.toggle_service_status(service, body.is_active, session)
    return {"success": True, "data": ServiceResponse.model_validate(service)}
