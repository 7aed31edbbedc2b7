"""
Service catalog and organization subscription schemas.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field, StrictBool

from .common import Pagination


class ServiceCategory(str, Enum):
    AUTOMATION = "automation"
    INTEGRATION = "integration"
    ANALYTICS = "analytics"
    MONITORING = "monitoring"
    SECURITY = "security"
    COMMUNICATION = "communication"
    STORAGE = "storage"
    COMPUTE = "compute"
    NETWORKING = "networking"
    DATABASE = "database"
    OTHER = "other"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELLED = "cancelled"


SERVICE_SORT_FIELDS = ("service_name", "service_short_name", "category", "created_at", "updated_at")


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class ServiceListQuery(BaseModel):
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=12, ge=1)
    search: Optional[str] = None
    category: Optional[ServiceCategory] = None
    sort_by: str = "created_at"
    sort_order: Literal["asc", "desc"] = "desc"
    include_inactive: bool = False


class ServiceCreateRequest(BaseModel):
    service_name: str = Field(..., min_length=1, max_length=100)
    service_short_name: str = Field(
        ...,
        min_length=2,
        max_length=50,
        pattern=r"^[a-z0-9][a-z0-9-]*[a-z0-9]$",
        description="URL-safe service identifier",
    )
    description: str = Field(..., min_length=1, max_length=2000)
    category: ServiceCategory = ServiceCategory.OTHER
    tags: list[str] = []


class ServiceUpdateRequest(BaseModel):
    service_name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, min_length=1, max_length=2000)
    category: Optional[ServiceCategory] = None
    tags: Optional[list[str]] = None


class ServiceToggleStatusRequest(BaseModel):
    is_active: StrictBool


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class ServiceResponse(BaseModel):
    id: uuid.UUID
    service_name: str
    service_short_name: str
    description: str
    category: ServiceCategory
    tags: list[str]
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ServiceListResponse(BaseModel):
    success: bool = True
    data: list[ServiceResponse]
    pagination: Pagination
    filters: dict


class SubscriptionResponse(BaseModel):
    id: uuid.UUID
    service_id: uuid.UUID
    org_id: uuid.UUID
    status: SubscriptionStatus
    subscribed_at: datetime
    unsubscribed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}
