"""
Organization API endpoints.

GET    /api/organization                               List orgs for the user
POST   /api/organization                               Create an org (creator is owner)
GET    /api/organization/current                       The session's current org
GET    /api/organization/{org_id}                      Org details
PATCH  /api/organization/{org_id}                      Update org (update)
POST   /api/organization/{org_id}/toggle-status        Activate/deactivate (manage_org)
GET    /api/organization/{org_id}/roles                Role catalog + caller's role
GET    /api/organization/{org_id}/members              List members (manage_members)
POST   /api/organization/{org_id}/members              Add member (manage_members)
PATCH  /api/organization/{org_id}/members/{user_id}    Change role (manage_members)
DELETE /api/organization/{org_id}/members/{user_id}    Remove member (manage_members)
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from workforce.core.auth import AuthContext, get_current_session, require_org_context
from workforce.core.database import get_session
from workforce.core.errors import AuthorizationError
from workforce.core.permissions import has_permission
from workforce.models.organization import Organization
from workforce.models.user_org import UserOrg
from workforce.services import organizations as org_service
from workforce_shared.schemas.common import Permission
from workforce_shared.schemas.organizations import (
    MemberAddRequest,
    MemberUpdateRequest,
    OrgCreateRequest,
    OrgToggleStatusRequest,
    OrgUpdateRequest,
)

log = structlog.get_logger()
router = APIRouter()


async def _org_access(
    org_id: uuid.UUID,
    auth: AuthContext,
    session: AsyncSession,
    permission: Optional[Permission] = None,
) -> tuple[Organization, UserOrg]:
    """Resolve the org and the caller's active membership in it."""
    org = await org_service.get_org(org_id, session)
    membership = await session.get(UserOrg, (auth.user_id, org_id))
    if membership is None or not membership.is_active:
        raise AuthorizationError(
            "User does not have access to this organization",
            code="ORGANIZATION_ACCESS_DENIED",
        )
    if permission is not None and not has_permission(membership.role, permission, membership.permissions):
        raise AuthorizationError(
            f"Permission '{permission.value}' required",
            code="INSUFFICIENT_PERMISSIONS",
        )
    return org, membership


@router.get("")
async def list_orgs(
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
):
    items = await org_service.list_user_orgs(auth.user_id, session)
    return {"success": True, "data": items, "current_org_id": auth.org_id}


@router.post("", status_code=201)
async def create_org(
    body: OrgCreateRequest,
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
):
    """Create a new organization. The creator becomes its owner."""
    org = await org_service.create_org(body, auth.user_id, session)
    membership = await session.get(UserOrg, (auth.user_id, org.id))
    return {"success": True, "data": await org_service.get_org_detail(org, membership, session)}


@router.get("/current")
async def current_org(
    auth: AuthContext = Depends(require_org_context),
    session: AsyncSession = Depends(get_session),
):
    return {"success": True, "data": await org_service.get_org_detail(auth.org, auth.membership, session)}


@router.get("/{org_id}")
async def get_org(
    org_id: uuid.UUID,
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
):
    org, membership = await _org_access(org_id, auth, session)
    return {"success": True, "data": await org_service.get_org_detail(org, membership, session)}


@router.patch("/{org_id}")
async def update_org(
    org_id: uuid.UUID,
    body: OrgUpdateRequest,
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
):
    org, membership = await _org_access(org_id, auth, session, Permission.UPDATE)
    org = await org_service.update_org(org, body, session)
    return {
        "success": True,
        "message": "Organization updated successfully",
        "data": await org_service.get_org_detail(org, membership, session),
    }


@router.post("/{org_id}/toggle-status")
async def toggle_org_status(
    org_id: uuid.UUID,
    body: OrgToggleStatusRequest,
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
):
    org, membership = await _org_access(org_id, auth, session, Permission.MANAGE_ORG)
    org = await org_service.toggle_org_status(org, body.is_active, session)
    state = "activated" if org.is_active else "deactivated"
    return {
        "success": True,
        "message": f"Organization {state} successfully",
        "data": await org_service.get_org_detail(org, membership, session),
    }


@router.get("/{org_id}/roles")
async def get_org_roles(
    org_id: uuid.UUID,
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
):
    _, membership = await _org_access(org_id, auth, session)
    return {"success": True, "data": org_service.get_org_roles(membership)}


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

@router.get("/{org_id}/members")
async def list_members(
    org_id: uuid.UUID,
    include_inactive: bool = False,
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
):
    await _org_access(org_id, auth, session, Permission.MANAGE_MEMBERS)
    members = await org_service.list_members(org_id, session, include_inactive=include_inactive)
    return {"success": True, "data": members}


@router.post("/{org_id}/members", status_code=201)
async def add_member(
    org_id: uuid.UUID,
    body: MemberAddRequest,
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
):
    org, membership = await _org_access(org_id, auth, session, Permission.MANAGE_MEMBERS)
    member = await org_service.add_member(org, body, membership, session)
    return {"success": True, "data": member}


@router.patch("/{org_id}/members/{user_id}")
async def change_member_role(
    org_id: uuid.UUID,
    user_id: uuid.UUID,
    body: MemberUpdateRequest,
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
):
    _, membership = await _org_access(org_id, auth, session, Permission.MANAGE_MEMBERS)
    member = await org_service.change_member_role(org_id, user_id, body, membership, session)
    return {"success": True, "data": member}


@router.delete("/{org_id}/members/{user_id}")
async def remove_member(
    org_id: uuid.UUID,
    user_id: uuid.UUID,
    auth: AuthContext = Depends(get_current_session),
    session: AsyncSession = Depends(get_session),
):
    _, membership = await _org_access(org_id, auth, session, Permission.MANAGE_MEMBERS)
    await org_service.remove_member(org_id, user_id, membership, session)
    return {"success": True, "message": "Member removed"}
