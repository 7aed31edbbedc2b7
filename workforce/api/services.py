"""
Service catalog endpoints.

Listing, categories and detail are open; subscribing acts on the session's
current organization.
"""

from __future__ import annotations

from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.core.auth import AuthContext, require_org_context, require_permission
from workforce.core.config import get_settings
from workforce.core.database import get_session
from workforce.services import catalog
from workforce_shared.schemas.common import Permission
from workforce_shared.schemas.services import (
    ServiceListQuery,
    ServiceListResponse,
    ServiceResponse,
    SubscriptionResponse,
)

log = structlog.get_logger()
settings = get_settings()
router = APIRouter()


@router.get("", response_model=ServiceListResponse)
async def list_services(
    query: Annotated[ServiceListQuery, Query()],
    session: AsyncSession = Depends(get_session),
):
    """Active catalog services with search, category filter and pagination."""
    query.include_inactive = False
    return await catalog.list_services(query, session, max_page_size=settings.max_page_size)


@router.get("/categories")
async def list_categories(session: AsyncSession = Depends(get_session)):
    return {"success": True, "data": await catalog.list_categories(session)}


@router.get("/subscriptions")
async def list_subscriptions(
    auth: AuthContext = Depends(require_org_context),
    session: AsyncSession = Depends(get_session),
):
    """Active subscriptions of the current organization."""
    rows = await catalog.list_org_subscriptions(auth.org_id, session)
    return {"success": True, "data": [SubscriptionResponse.model_validate(r) for r in rows]}


@router.get("/{ref}")
async def get_service(ref: str, session: AsyncSession = Depends(get_session)):
    """Service detail by id or short name."""
    service = await catalog.get_service(ref, session)
    return {"success": True, "data": ServiceResponse.model_validate(service)}


@router.post("/{ref}/subscribe")
async def subscribe(
    ref: str,
    auth: AuthContext = Depends(require_permission(Permission.CREATE)),
    session: AsyncSession = Depends(get_session),
):
    service = await catalog.get_service(ref, session)
    subscription = await catalog.subscribe(service, auth.org_id, auth.user_id, session)
    return {"success": True, "data": SubscriptionResponse.model_validate(subscription)}


@router.delete("/{ref}/subscribe")
async def unsubscribe(
    ref: str,
    auth: AuthContext = Depends(require_permission(Permission.CREATE)),
    session: AsyncSession = Depends(get_session),
):
    service = await catalog.get_service(ref, session, include_inactive=True)
    subscription = await catalog.unsubscribe(service, auth.org_id, session)
    return {
        "success": True,
        "message": "Successfully unsubscribed from service",
        "data": SubscriptionResponse.model_validate(subscription),
    }
