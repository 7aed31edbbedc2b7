"""User model."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class User(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "users"

    email: str = Field(unique=True, index=True, nullable=False)
    username: str = Field(unique=True, index=True, nullable=False)
    name: str = Field(nullable=False)
    password_hash: str = Field(nullable=False)  # bcrypt
    title: Optional[str] = None
    avatar: Optional[str] = None
    is_active: bool = Field(default=True, nullable=False)
    is_platform_admin: bool = Field(default=False, nullable=False)  # catalog workbench access
    current_org_id: Optional[uuid.UUID] = Field(default=None, foreign_key="organizations.id")
    last_login_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
