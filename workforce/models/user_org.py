"""User-Organization membership (join table)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import utcnow


class UserOrg(SQLModel, table=True):
    __tablename__ = "users_orgs"

    user_id: uuid.UUID = Field(foreign_key="users.id", primary_key=True)
    org_id: uuid.UUID = Field(foreign_key="organizations.id", primary_key=True)
    role: str = Field(nullable=False, default="member")  # viewer | member | admin | owner
    permissions: list[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)  # custom grants
    is_active: bool = Field(default=True, nullable=False)
    joined_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=sa.DateTime())
    deactivated_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
