"""Feature catalog model (global, not tenant-owned)."""

from typing import Optional

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Feature(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "features"

    name: str = Field(nullable=False)
    code: str = Field(unique=True, index=True, nullable=False)
    description: Optional[str] = None
    is_active: bool = Field(default=True, nullable=False)
    is_beta: bool = Field(default=False, nullable=False)
