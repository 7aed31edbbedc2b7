"""Service catalog model."""

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Service(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "services"

    service_name: str = Field(nullable=False, index=True)
    service_short_name: str = Field(unique=True, nullable=False, index=True)
    description: str = Field(nullable=False)
    category: str = Field(default="other", nullable=False, index=True)
    tags: list[str] = Field(default_factory=list, sa_type=sa.JSON, nullable=False)
    is_active: bool = Field(default=True, nullable=False)
