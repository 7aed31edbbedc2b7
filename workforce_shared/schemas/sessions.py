"""
Session-related Pydantic schemas: login, refresh, organization switch and the
session payload returned to clients.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from .common import OrgRole, SessionType, SubscriptionTier


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class DeviceInfo(BaseModel):
    user_agent: Optional[str] = None
    ip: Optional[str] = None
    platform: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str = Field(..., min_length=1)
    organization_id: Optional[uuid.UUID] = None
    session_type: SessionType = SessionType.WEB
    remember_me: bool = False

    @model_validator(mode="after")
    def _identifier_required(self) -> "LoginRequest":
        if not (self.username or self.email):
            raise ValueError("Username or email is required")
        return self

    @property
    def identifier(self) -> str:
        return (self.username or self.email or "").strip().lower()


class RefreshRequest(BaseModel):
    refresh_token: Optional[str] = None


class SwitchOrganizationRequest(BaseModel):
    organization_id: uuid.UUID


class GuardRequest(BaseModel):
    pathname: str = Field(..., min_length=1)
    exclude_paths: Optional[list[str]] = None


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class SessionUser(BaseModel):
    id: uuid.UUID
    name: str
    username: str
    email: str
    title: Optional[str] = None
    avatar: Optional[str] = None


class SessionOrg(BaseModel):
    id: uuid.UUID
    name: str
    display_name: Optional[str] = None
    logo: Optional[str] = None
    is_active: bool = True
    subscription_tier: Optional[SubscriptionTier] = None


class SessionResponse(BaseModel):
    session_token: str
    refresh_token: Optional[str] = None
    expires_at: datetime
    type: SessionType
    user: SessionUser
    current_org: Optional[SessionOrg] = None
    available_orgs: list[SessionOrg] = []
    role: Optional[OrgRole] = None
    permissions: list[str] = []


class SessionInfo(BaseModel):
    """Active-session listing entry (tokens are never included)."""
    id: uuid.UUID
    type: SessionType
    current_org_id: uuid.UUID
    created_at: datetime
    expires_at: datetime
    last_access_at: datetime
    device: dict = {}


class GuardDecisionResponse(BaseModel):
    action: str  # render | redirect
    redirect_to: Optional[str] = None
    reason: str
