"""Agent model: an organization's configured instance of a subscribed service."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Agent(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "agents"

    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    service_id: uuid.UUID = Field(foreign_key="services.id", nullable=False, index=True)
    agent_name: str = Field(nullable=False)
    description: Optional[str] = None
    status: str = Field(default="configuring", nullable=False)  # see AgentStatus
    configuration: dict = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)
    created_by: Optional[uuid.UUID] = Field(default=None, foreign_key="users.id")
    last_activity: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
