"""Organization model (the tenant boundary)."""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Organization(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    name: str = Field(nullable=False, index=True)
    description: Optional[str] = None
    settings: dict = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)
