"""
User service: self-service registration and profile lookup.
"""

from __future__ import annotations

import re
import uuid

import structlog
from sqlalchemy import func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from workforce.core.errors import ConflictError, NotFoundError
from workforce.core.security import hash_password
from workforce.models.organization import Organization
from workforce.models.user import User
from workforce.models.user_org import UserOrg
from workforce_shared.schemas.common import OrgRole, SubscriptionTier
from workforce_shared.schemas.users import MembershipSummary, RegisterRequest, UserProfile

log = structlog.get_logger()

PERSONAL_ORG_SETTINGS = {"timezone": "UTC", "currency": "USD", "locale": "en", "personal": True}


async def _unique_username(email: str, session: AsyncSession) -> str:
    """Username from the email local part, suffixed until unused."""
    base = re.sub(r"[^a-z0-9._-]", "", email.split("@", 1)[0].lower()) or "user"
    candidate, suffix = base, 1
    while True:
        result = await session.execute(select(User.id).where(func.lower(User.username) == candidate))
        if result.first() is None:
            return candidate
        suffix += 1
        candidate = f"{base}{suffix}"


async def _unique_org_name(email: str, session: AsyncSession) -> str:
    """Personal org name derived from the email, suffixed until unused."""
    base = f"personal-org-{re.sub(r'[^a-z0-9]', '-', email)}"
    candidate, suffix = base, 1
    while True:
        result = await session.execute(
            select(Organization.id).where(func.lower(Organization.name) == candidate)
        )
        if result.first() is None:
            return candidate
        suffix += 1
        candidate = f"{base}-{suffix}"


async def register_user(req: RegisterRequest, session: AsyncSession) -> tuple[User, Organization]:
    """Create a user with a personal organization they own."""
    email = req.email.lower()
    existing = await session.execute(select(User.id).where(func.lower(User.email) == email))
    if existing.first() is not None:
        raise ConflictError(
            "A user with this email already exists",
            code="USER_EXISTS",
        )

    name = f"{req.first_name.strip()} {req.last_name.strip()}"
    user = User(
        email=email,
        username=await _unique_username(email, session),
        name=name,
        password_hash=hash_password(req.password),
        title=req.title,
    )
    session.add(user)
    await session.flush()

    org = Organization(
        name=await _unique_org_name(email, session),
        display_name=f"Personal Organization for {name}",
        description=f"Personal workspace for {email}",
        subscription_tier=SubscriptionTier.FREE.value,
        settings=dict(PERSONAL_ORG_SETTINGS),
    )
    session.add(org)
    await session.flush()

    session.add(UserOrg(user_id=user.id, org_id=org.id, role=OrgRole.OWNER.value))
    user.current_org_id = org.id
    session.add(user)
    await session.flush()

    log.info("user.registered", user_id=str(user.id), org_id=str(org.id))
    return user, org


async def get_profile(user_id: uuid.UUID, session: AsyncSession) -> UserProfile:
    user = await session.get(User, user_id)
    if user is None:
        raise NotFoundError("User not found", code="USER_NOT_FOUND")

    result = await session.execute(
        select(Organization, UserOrg)
        .join(UserOrg, UserOrg.org_id == Organization.id)
        .where(UserOrg.user_id == user_id, UserOrg.is_active == True)  # noqa: E712
        .order_by(UserOrg.joined_at)
    )
    memberships = [
        MembershipSummary(
            org_id=org.id,
            org_name=org.display_name or org.name,
            role=membership.role,
            is_current=org.id == user.current_org_id,
        )
        for org, membership in result.all()
    ]
    return UserProfile(
        id=user.id,
        name=user.name,
        username=user.username,
        email=user.email,
        title=user.title,
        avatar=user.avatar,
        current_org_id=user.current_org_id,
        last_login_at=user.last_login_at,
        created_at=user.created_at,
        memberships=memberships,
    )
