"""
Organization and team-membership schemas.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, StrictBool

from .common import OrgRole, Permission, SubscriptionTier


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=100, description="Unique organization name")
    display_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)


class OrgUpdateRequest(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    display_name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = Field(None, max_length=1000)


class OrgToggleStatusRequest(BaseModel):
    is_active: StrictBool


class MemberAddRequest(BaseModel):
    email: EmailStr
    role: OrgRole = OrgRole.MEMBER
    permissions: list[Permission] = []


class MemberUpdateRequest(BaseModel):
    role: Optional[OrgRole] = None
    permissions: Optional[list[Permission]] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgListItem(BaseModel):
    id: uuid.UUID
    name: str
    display_name: Optional[str] = None
    description: Optional[str] = None
    is_active: bool
    subscription_tier: SubscriptionTier
    member_count: int = 0
    role: OrgRole  # the requesting user's role in this org
    permissions: list[str] = []
    created_at: datetime
    updated_at: datetime


class RoleInfo(BaseModel):
    name: OrgRole
    level: int
    permissions: list[str]


class OrgRolesResponse(BaseModel):
    roles: list[RoleInfo]
    current_role: OrgRole
    current_permissions: list[str]


class MemberResponse(BaseModel):
    user_id: uuid.UUID
    name: str
    email: str
    role: OrgRole
    permissions: list[str] = []
    is_active: bool
    joined_at: datetime
