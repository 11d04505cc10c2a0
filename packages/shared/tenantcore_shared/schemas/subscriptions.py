"""
Organization subscription schemas.

A subscription binds one organization to one plan over time. At most one
row per organization is *current* (trial or active); the rest is history.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import Field

from .catalog import PlanResponse
from .common import ApiModel


class SubscriptionStatus(str, Enum):
    TRIAL = "trial"
    ACTIVE = "active"
    CANCELED = "canceled"
    EXPIRED = "expired"


CURRENT_STATUSES: frozenset[SubscriptionStatus] = frozenset(
    {SubscriptionStatus.TRIAL, SubscriptionStatus.ACTIVE}
)


def is_current(status: SubscriptionStatus) -> bool:
    return status in CURRENT_STATUSES


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class SubscriptionCreateRequest(ApiModel):
    organization_id: uuid.UUID
    plan_id: uuid.UUID
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    seats_used: int = Field(default=0, ge=0)


class SubscriptionCancelRequest(ApiModel):
    org_id: uuid.UUID


class UsageRecordRequest(ApiModel):
    org_id: uuid.UUID
    key: str = Field(..., min_length=1, max_length=64)
    amount: int = Field(default=1, ge=1)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class SubscriptionResponse(ApiModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    plan_id: uuid.UUID
    status: SubscriptionStatus
    start_date: datetime
    end_date: Optional[datetime] = None
    seats_used: int = 0
    usage: dict[str, int] = Field(default_factory=dict)
    created_at: datetime
    updated_at: datetime


class SubscriptionDetailResponse(SubscriptionResponse):
    """Subscription with its plan expanded."""
    plan: PlanResponse


class HasFeatureResponse(ApiModel):
    has_feature: bool


class EntitlementsResponse(ApiModel):
    organization_id: uuid.UUID
    feature_codes: list[str]
