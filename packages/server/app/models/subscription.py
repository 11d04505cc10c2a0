"""Organization subscription ledger (tenant-scoped).

Rows are never re-pointed at another plan: a switch closes the current row
and inserts a new one. The partial unique index keeps at most one current
(trial/active) row per organization.
"""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin

CURRENT_STATUS_SQL = "status IN ('active', 'trial')"


class OrgSubscription(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "org_subscriptions"
    __table_args__ = (
        sa.Index(
            "uq_org_subscriptions_current",
            "org_id",
            unique=True,
            postgresql_where=sa.text(CURRENT_STATUS_SQL),
            sqlite_where=sa.text(CURRENT_STATUS_SQL),
        ),
    )

    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    plan_id: uuid.UUID = Field(foreign_key="subscription_plans.id", nullable=False, index=True)
    status: str = Field(nullable=False)
    start_date: datetime = Field(nullable=False, sa_type=sa.DateTime(timezone=True))
    end_date: Optional[datetime] = Field(default=None, sa_type=sa.DateTime(timezone=True))
    seats_used: int = Field(default=0, nullable=False)
    usage: dict = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)
