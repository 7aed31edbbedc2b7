"""Organization subscription to a catalog service."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class OrgSubscription(UUIDMixin, SQLModel, table=True):
    __tablename__ = "subscriptions"
    __table_args__ = (
        sa.UniqueConstraint("service_id", "org_id", name="uq_subscription_service_org"),
    )

    service_id: uuid.UUID = Field(foreign_key="services.id", nullable=False, index=True)
    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    status: str = Field(default="active", nullable=False)  # active | cancelled
    subscribed_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    subscribed_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=sa.DateTime())
    unsubscribed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
