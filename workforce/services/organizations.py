"""
Organization service: tenant CRUD and team membership.
"""

from __future__ import annotations

import uuid
from typing import Iterable, Optional

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from workforce.core.errors import (
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from workforce.core.permissions import ROLE_PERMISSIONS, effective_permissions, role_level
from workforce.models.base import utcnow
from workforce.models.organization import Organization
from workforce.models.user import User
from workforce.models.user_org import UserOrg
from workforce_shared.schemas.common import ROLE_ORDER, OrgRole, Permission
from workforce_shared.schemas.organizations import (
    MemberAddRequest,
    MemberResponse,
    MemberUpdateRequest,
    OrgCreateRequest,
    OrgListItem,
    OrgRolesResponse,
    OrgUpdateRequest,
    RoleInfo,
)

log = structlog.get_logger()


async def _member_count(org_id: uuid.UUID, session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(UserOrg)
        .where(UserOrg.org_id == org_id, UserOrg.is_active == True)  # noqa: E712
    )
    return result.scalar_one()


async def _name_taken(name: str, session: AsyncSession, exclude: Optional[uuid.UUID] = None) -> bool:
    query = select(Organization.id).where(func.lower(Organization.name) == name.lower())
    if exclude is not None:
        query = query.where(Organization.id != exclude)
    result = await session.execute(query)
    return result.first() is not None


def _list_item(org: Organization, membership: UserOrg, member_count: int) -> OrgListItem:
    return OrgListItem(
        id=org.id,
        name=org.name,
        display_name=org.display_name,
        description=org.description,
        is_active=org.is_active,
        subscription_tier=org.subscription_tier,
        member_count=member_count,
        role=membership.role,
        permissions=effective_permissions(membership.role, membership.permissions),
        created_at=org.created_at,
        updated_at=org.updated_at,
    )


async def list_user_orgs(user_id: uuid.UUID, session: AsyncSession) -> list[OrgListItem]:
    """List all orgs a user actively belongs to, with their role."""
    result = await session.execute(
        select(Organization, UserOrg)
        .join(UserOrg, UserOrg.org_id == Organization.id)
        .where(UserOrg.user_id == user_id, UserOrg.is_active == True)  # noqa: E712
        .order_by(Organization.name)
    )
    items = []
    for org, membership in result.all():
        items.append(_list_item(org, membership, await _member_count(org.id, session)))
    return items


async def create_org(
    req: OrgCreateRequest,
    creator_id: uuid.UUID,
    session: AsyncSession,
    *,
    subscription_tier: str = "free",
) -> Organization:
    """Create an org and make the creator its owner."""
    if await _name_taken(req.name, session):
        raise ConflictError("Organization name already taken", code="ORGANIZATION_EXISTS")

    org = Organization(
        name=req.name,
        display_name=req.display_name or req.name,
        description=req.description,
        subscription_tier=subscription_tier,
    )
    session.add(org)
    await session.flush()

    session.add(UserOrg(user_id=creator_id, org_id=org.id, role=OrgRole.OWNER.value))
    await session.flush()

    log.info("org.created", org_id=str(org.id), name=org.name, creator=str(creator_id))
    return org


async def get_org(org_id: uuid.UUID, session: AsyncSession) -> Organization:
    """Get an org by id; raises 404 if it does not exist."""
    org = await session.get(Organization, org_id)
    if org is None:
        raise NotFoundError("Organization not found", code="ORGANIZATION_NOT_FOUND")
    return org


async def get_org_detail(org: Organization, membership: UserOrg, session: AsyncSession) -> OrgListItem:
    return _list_item(org, membership, await _member_count(org.id, session))


async def update_org(org: Organization, req: OrgUpdateRequest, session: AsyncSession) -> Organization:
    """Update name, display name and/or description."""
    if req.name is not None and req.name != org.name:
        if await _name_taken(req.name, session, exclude=org.id):
            raise ConflictError("Organization name already taken", code="ORGANIZATION_EXISTS")
        org.name = req.name
    if req.display_name is not None:
        org.display_name = req.display_name
    if req.description is not None:
        org.description = req.description

    org.updated_at = utcnow()
    session.add(org)
    await session.flush()

    log.info("org.updated", org_id=str(org.id))
    return org


async def toggle_org_status(org: Organization, is_active: bool, session: AsyncSession) -> Organization:
    org.is_active = is_active
    org.updated_at = utcnow()
    session.add(org)
    await session.flush()

    log.info("org.status_changed", org_id=str(org.id), is_active=is_active)
    return org


def get_org_roles(membership: UserOrg) -> OrgRolesResponse:
    """The role catalog plus the caller's role and effective permissions."""
    roles = [
        RoleInfo(
            name=role,
            level=role_level(role),
            permissions=sorted(p.value for p in ROLE_PERMISSIONS[role]),
        )
        for role in ROLE_ORDER
    ]
    return OrgRolesResponse(
        roles=roles,
        current_role=membership.role,
        current_permissions=effective_permissions(membership.role, membership.permissions),
    )


# ---------------------------------------------------------------------------
# Members
# ---------------------------------------------------------------------------

def _member_response(user: User, membership: UserOrg) -> MemberResponse:
    return MemberResponse(
        user_id=user.id,
        name=user.name,
        email=user.email,
        role=membership.role,
        permissions=membership.permissions,
        is_active=membership.is_active,
        joined_at=membership.joined_at,
    )


async def list_members(
    org_id: uuid.UUID, session: AsyncSession, *, include_inactive: bool = False
) -> list[MemberResponse]:
    query = (
        select(User, UserOrg)
        .join(UserOrg, UserOrg.user_id == User.id)
        .where(UserOrg.org_id == org_id)
        .order_by(UserOrg.joined_at)
    )
    if not include_inactive:
        query = query.where(UserOrg.is_active == True)  # noqa: E712
    result = await session.execute(query)
    return [_member_response(user, membership) for user, membership in result.all()]


def _check_grantable(
    caller: UserOrg,
    role: Optional[OrgRole] = None,
    permissions: Iterable[Permission] = (),
) -> None:
    """A caller may hand out neither a role above their own nor a grant they lack."""
    if role is not None and role_level(role) > role_level(caller.role):
        raise AuthorizationError("Cannot grant a role above your own", code="ROLE_ESCALATION")
    held = set(effective_permissions(caller.role, caller.permissions))
    if any(p.value not in held for p in permissions):
        raise AuthorizationError("Cannot grant a permission you do not hold", code="ROLE_ESCALATION")


async def _active_owner_count(org_id: uuid.UUID, session: AsyncSession) -> int:
    result = await session.execute(
        select(func.count())
        .select_from(UserOrg)
        .where(
            UserOrg.org_id == org_id,
            UserOrg.role == OrgRole.OWNER.value,
            UserOrg.is_active == True,  # noqa: E712
        )
    )
    return result.scalar_one()


async def add_member(
    org: Organization,
    req: MemberAddRequest,
    caller: UserOrg,
    session: AsyncSession,
) -> MemberResponse:
    """Add an existing user to the org, reactivating a removed membership."""
    _check_grantable(caller, req.role, req.permissions)

    result = await session.execute(select(User).where(func.lower(User.email) == req.email.lower()))
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")

    membership = await session.get(UserOrg, (user.id, org.id))
    if membership is not None and membership.is_active:
        raise ConflictError("User is already a member of this organization", code="ALREADY_MEMBER")

    if await _member_count(org.id, session) >= org.max_users:
        raise ValidationError("Organization member limit reached", code="MEMBER_LIMIT_REACHED")

    if membership is None:
        membership = UserOrg(user_id=user.id, org_id=org.id)
    membership.role = req.role.value
    membership.permissions = [p.value for p in req.permissions]
    membership.is_active = True
    membership.joined_at = utcnow()
    membership.deactivated_at = None
    session.add(membership)
    await session.flush()

    log.info("org.member_added", org_id=str(org.id), user_id=str(user.id), role=membership.role)
    return _member_response(user, membership)


async def _get_membership(org_id: uuid.UUID, user_id: uuid.UUID, session: AsyncSession) -> tuple[User, UserOrg]:
    membership = await session.get(UserOrg, (user_id, org_id))
    user = await session.get(User, user_id)
    if membership is None or user is None or not membership.is_active:
        raise NotFoundError("Member not found", code="MEMBER_NOT_FOUND")
    return user, membership


async def change_member_role(
    org_id: uuid.UUID,
    user_id: uuid.UUID,
    req: MemberUpdateRequest,
    caller: UserOrg,
    session: AsyncSession,
) -> MemberResponse:
    user, membership = await _get_membership(org_id, user_id, session)

    if role_level(membership.role) > role_level(caller.role):
        raise AuthorizationError("Cannot modify a member above your own role", code="ROLE_ESCALATION")
    _check_grantable(caller, req.role, req.permissions or ())

    if req.role is not None:
        if (
            membership.role == OrgRole.OWNER.value
            and req.role != OrgRole.OWNER
            and await _active_owner_count(org_id, session) <= 1
        ):
            raise ValidationError("Organization must keep at least one owner", code="LAST_OWNER")
        membership.role = req.role.value
    if req.permissions is not None:
        membership.permissions = [p.value for p in req.permissions]

    session.add(membership)
    await session.flush()

    log.info("org.member_updated", org_id=str(org_id), user_id=str(user_id), role=membership.role)
    return _member_response(user, membership)


async def remove_member(
    org_id: uuid.UUID,
    user_id: uuid.UUID,
    caller: UserOrg,
    session: AsyncSession,
) -> None:
    """Deactivate a membership. Memberships are never hard-deleted."""
    _, membership = await _get_membership(org_id, user_id, session)

    if role_level(membership.role) > role_level(caller.role):
        raise AuthorizationError("Cannot remove a member above your own role", code="ROLE_ESCALATION")
    if membership.role == OrgRole.OWNER.value and await _active_owner_count(org_id, session) <= 1:
        raise ValidationError("Organization must keep at least one owner", code="LAST_OWNER")

    membership.is_active = False
    membership.deactivated_at = utcnow()
    session.add(membership)
    await session.flush()

    log.info("org.member_removed", org_id=str(org_id), user_id=str(user_id))
