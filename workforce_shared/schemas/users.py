"""User registration and profile schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, EmailStr, Field

from .common import OrgRole


class RegisterRequest(BaseModel):
    first_name: str = Field(min_length=1, max_length=100)
    last_name: str = Field(min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(min_length=8, max_length=128)
    title: Optional[str] = Field(default=None, max_length=100)


class MembershipSummary(BaseModel):
    org_id: uuid.UUID
    org_name: str
    role: OrgRole
    is_current: bool


class UserProfile(BaseModel):
    id: uuid.UUID
    name: str
    username: str
    email: str
    title: Optional[str] = None
    avatar: Optional[str] = None
    current_org_id: Optional[uuid.UUID] = None
    last_login_at: Optional[datetime] = None
    created_at: datetime
    memberships: List[MembershipSummary] = []
