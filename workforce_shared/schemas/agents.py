"""Agent (per-organization service instance) schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AgentStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PAUSED = "paused"
    ERROR = "error"
    SYNCING = "syncing"
    CONFIGURING = "configuring"
    SUSPENDED = "suspended"


class AgentCreateRequest(BaseModel):
    service_id: uuid.UUID
    agent_name: str = Field(min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    configuration: dict = {}


class AgentUpdateRequest(BaseModel):
    agent_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    configuration: Optional[dict] = None


class AgentStatusRequest(BaseModel):
    status: AgentStatus


class AgentResponse(BaseModel):
    id: uuid.UUID
    agent_name: str
    description: Optional[str] = None
    service_id: uuid.UUID
    org_id: uuid.UUID
    status: AgentStatus
    configuration: dict
    created_by: Optional[uuid.UUID] = None
    last_activity: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}
