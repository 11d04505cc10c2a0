"""Invitation model (tenant-scoped, single-use token)."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Invitation(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "invitations"

    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    team_id: uuid.UUID = Field(foreign_key="teams.id", nullable=False, index=True)
    email: str = Field(nullable=False, index=True)
    role_in_team: Optional[str] = None
    token: str = Field(unique=True, index=True, nullable=False)
    status: str = Field(default="pending", nullable=False, index=True)
    expires_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
