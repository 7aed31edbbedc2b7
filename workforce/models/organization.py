"""Organization (tenant) model."""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Organization(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    name: str = Field(unique=True, nullable=False, index=True)
    display_name: Optional[str] = None
    description: Optional[str] = None
    logo: Optional[str] = None
    is_active: bool = Field(default=True, nullable=False)
    subscription_tier: str = Field(default="free", nullable=False)  # free | basic | premium | enterprise
    max_users: int = Field(default=5, nullable=False)
    settings: dict = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)
