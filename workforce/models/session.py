"""Login session model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin, utcnow


class UserSession(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "sessions"
    __table_args__ = (
        sa.Index("ix_sessions_user_status", "user_id", "status"),
        sa.Index("ix_sessions_status_expires", "status", "expires_at"),
    )

    session_token: str = Field(unique=True, index=True, nullable=False)
    token_jti: str = Field(unique=True, index=True, nullable=False)
    refresh_token: Optional[str] = Field(default=None, unique=True, index=True)
    user_id: uuid.UUID = Field(foreign_key="users.id", nullable=False, index=True)
    current_org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    status: str = Field(default="active", nullable=False)  # active | expired | revoked
    type: str = Field(default="web", nullable=False)  # web | api | mobile | service
    login_method: str = Field(default="password", nullable=False)
    remember_me: bool = Field(default=False, nullable=False)
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime())
    refresh_expires_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
    last_access_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=sa.DateTime())
    device: dict = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)
