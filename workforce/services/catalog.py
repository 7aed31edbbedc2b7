"""
Service catalog: public listing, platform-admin workbench and organization
subscriptions.
"""

from __future__ import annotations

import math
import uuid
from typing import Optional

import structlog
from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from workforce.core.errors import ConflictError, NotFoundError, ValidationError
from workforce.models.base import utcnow
from workforce.models.service import Service
from workforce.models.subscription import OrgSubscription
from workforce_shared.schemas.common import Pagination
from workforce_shared.schemas.services import (
    SERVICE_SORT_FIELDS,
    ServiceCategory,
    ServiceCreateRequest,
    ServiceListQuery,
    ServiceListResponse,
    ServiceResponse,
    ServiceUpdateRequest,
    SubscriptionStatus,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Listing
# ---------------------------------------------------------------------------

async def list_services(
    query: ServiceListQuery, session: AsyncSession, *, max_page_size: int
) -> ServiceListResponse:
    """Paginated catalog listing with search, category filter and sorting."""
    if query.sort_by not in SERVICE_SORT_FIELDS:
        raise ValidationError(
            f"sort_by must be one of: {', '.join(SERVICE_SORT_FIELDS)}",
            code="INVALID_SORT_FIELD",
        )
    limit = min(query.limit, max_page_size)

    conditions = []
    if not query.include_inactive:
        conditions.append(Service.is_active == True)  # noqa: E712
    if query.category is not None:
        conditions.append(Service.category == query.category.value)
    if query.search:
        term = query.search.strip().lower()
        term = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        pattern = f"%{term}%"
        conditions.append(
            or_(
                func.lower(Service.service_name).like(pattern, escape="\\"),
                func.lower(Service.service_short_name).like(pattern, escape="\\"),
                func.lower(Service.description).like(pattern, escape="\\"),
            )
        )

    count_result = await session.execute(select(func.count()).select_from(Service).where(*conditions))
    total = count_result.scalar_one()

    column = getattr(Service, query.sort_by)
    order = column.asc() if query.sort_order == "asc" else column.desc()
    result = await session.execute(
        select(Service)
        .where(*conditions)
        .order_by(order, Service.id)
        .offset((query.page - 1) * limit)
        .limit(limit)
    )
    services = result.scalars().all()

    total_pages = math.ceil(total / limit) if total else 0
    return ServiceListResponse(
        data=[ServiceResponse.model_validate(s) for s in services],
        pagination=Pagination(
            page=query.page,
            limit=limit,
            total=total,
            total_pages=total_pages,
            has_next=query.page < total_pages,
            has_prev=query.page > 1,
        ),
        filters={
            "search": query.search or "",
            "category": query.category.value if query.category else "",
            "sort_by": query.sort_by,
            "sort_order": query.sort_order,
        },
    )


async def list_categories(session: AsyncSession) -> list[dict]:
    """Every category with the number of active services in it."""
    result = await session.execute(
        select(Service.category, func.count())
        .where(Service.is_active == True)  # noqa: E712
        .group_by(Service.category)
    )
    counts = dict(result.all())
    return [{"category": c.value, "count": counts.get(c.value, 0)} for c in ServiceCategory]


async def get_service(ref: str, session: AsyncSession, *, include_inactive: bool = False) -> Service:
    """Look a service up by id or by short name."""
    try:
        service = await session.get(Service, uuid.UUID(ref))
    except ValueError:
        result = await session.execute(select(Service).where(Service.service_short_name == ref.lower()))
        service = result.scalar_one_or_none()

    if service is None or (not service.is_active and not include_inactive):
        raise NotFoundError("Service not found", code="SERVICE_NOT_FOUND")
    return service


# ---------------------------------------------------------------------------
# Workbench
# ---------------------------------------------------------------------------

async def create_service(req: ServiceCreateRequest, session: AsyncSession) -> Service:
    existing = await session.execute(
        select(Service.id).where(Service.service_short_name == req.service_short_name)
    )
    if existing.first() is not None:
        raise ConflictError("Service short name already exists", code="SERVICE_EXISTS")

    service = Service(
        service_name=req.service_name,
        service_short_name=req.service_short_name,
        description=req.description,
        category=req.category.value,
        tags=list(req.tags),
    )
    session.add(service)
    await session.flush()

    log.info("service.created", service_id=str(service.id), short_name=service.service_short_name)
    return service


async def update_service(service: Service, req: ServiceUpdateRequest, session: AsyncSession) -> Service:
    changes = req.model_dump(exclude_unset=True, exclude_none=True)
    if "category" in changes:
        changes["category"] = req.category.value
    for field, value in changes.items():
        setattr(service, field, value)

    service.updated_at = utcnow()
    session.add(service)
    await session.flush()

    log.info("service.updated", service_id=str(service.id), fields=sorted(changes))
    return service


async def toggle_service_status(service: Service, is_active: bool, session: AsyncSession) -> Service:
    service.is_active = is_active
    service.updated_at = utcnow()
    session.add(service)
    await session.flush()

    log.info("service.status_changed", service_id=str(service.id), is_active=is_active)
    return service


# ---------------------------------------------------------------------------
# Subscriptions
# ---------------------------------------------------------------------------

async def _subscription(
    service_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> Optional[OrgSubscription]:
    result = await session.execute(
        select(OrgSubscription).where(
            OrgSubscription.service_id == service_id,
            OrgSubscription.org_id == org_id,
        )
    )
    return result.scalar_one_or_none()


async def subscribe(
    service: Service,
    org_id: uuid.UUID,
    user_id: uuid.UUID,
    session: AsyncSession,
) -> OrgSubscription:
    """Subscribe an org to a service, reactivating a cancelled subscription."""
    subscription = await _subscription(service.id, org_id, session)
    if subscription is not None and subscription.status == SubscriptionStatus.ACTIVE.value:
        raise ConflictError("Already subscribed to this service", code="ALREADY_SUBSCRIBED")

    if subscription is None:
        subscription = OrgSubscription(service_id=service.id, org_id=org_id)
    subscription.status = SubscriptionStatus.ACTIVE.value
    subscription.subscribed_by = user_id
    subscription.subscribed_at = utcnow()
    subscription.unsubscribed_at = None
    session.add(subscription)
    await session.flush()

    log.info("service.subscribed", service_id=str(service.id), org_id=str(org_id))
    return subscription


async def unsubscribe(service: Service, org_id: uuid.UUID, session: AsyncSession) -> OrgSubscription:
    subscription = await _subscription(service.id, org_id, session)
    if subscription is None or subscription.status != SubscriptionStatus.ACTIVE.value:
        raise NotFoundError("Active subscription not found", code="SUBSCRIPTION_NOT_FOUND")

    subscription.status = SubscriptionStatus.CANCELLED.value
    subscription.unsubscribed_at = utcnow()
    session.add(subscription)
    await session.flush()

    log.info("service.unsubscribed", service_id=str(service.id), org_id=str(org_id))
    return subscription


async def list_org_subscriptions(org_id: uuid.UUID, session: AsyncSession) -> list[OrgSubscription]:
    result = await session.execute(
        select(OrgSubscription)
        .where(
            OrgSubscription.org_id == org_id,
            OrgSubscription.status == SubscriptionStatus.ACTIVE.value,
        )
        .order_by(OrgSubscription.subscribed_at.desc())
    )
    return list(result.scalars().all())


async def is_subscribed(service_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession) -> bool:
    subscription = await _subscription(service_id, org_id, session)
    return subscription is not None and subscription.status == SubscriptionStatus.ACTIVE.value
