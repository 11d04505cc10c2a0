"""
Feature & plan catalog schemas.

Features and subscription plans are global catalog data, not tenant-owned.
A plan bundles an ordered set of features with pricing and numeric limits.
"""

from __future__ import annotations

import re
import uuid
from datetime import datetime
from typing import Annotated, Optional

from pydantic import AfterValidator, Field

from .common import ApiModel


def derive_feature_code(name: str) -> str:
    """Build a feature code from its display name: 'Team chat' -> 'TEAM_CHAT'."""
    code = name.strip().upper()
    code = re.sub(r"\s+", "_", code)
    return re.sub(r"[^\w]", "", code)


def _dedupe(ids: list[uuid.UUID]) -> list[uuid.UUID]:
    seen: set[uuid.UUID] = set()
    ordered = []
    for fid in ids:
        if fid not in seen:
            seen.add(fid)
            ordered.append(fid)
    return ordered


# Plans keep feature order; repeated ids collapse onto the first occurrence.
FeatureIdList = Annotated[list[uuid.UUID], AfterValidator(_dedupe)]


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------

class FeatureCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    code: str = Field(..., min_length=1, max_length=64)
    description: Optional[str] = Field(None, max_length=1000)
    is_active: bool = True
    is_beta: bool = False


class FeatureUpdateRequest(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    code: Optional[str] = Field(None, min_length=1, max_length=64)
    description: Optional[str] = Field(None, max_length=1000)
    is_active: Optional[bool] = None
    is_beta: Optional[bool] = None


class FeatureResponse(ApiModel):
    id: uuid.UUID
    name: str
    code: str
    description: Optional[str] = None
    is_active: bool
    is_beta: bool
    created_at: datetime
    updated_at: datetime


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

class PlanCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100)
    monthly_price: float = Field(default=0, ge=0)
    annual_price: float = Field(default=0, ge=0)
    seat_limit: Optional[int] = Field(default=None, ge=0)
    usage_limits: dict[str, int] = Field(default_factory=dict)
    feature_ids: FeatureIdList = Field(default_factory=list)
    is_active: bool = True


class PlanUpdateRequest(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    monthly_price: Optional[float] = Field(None, ge=0)
    annual_price: Optional[float] = Field(None, ge=0)
    seat_limit: Optional[int] = Field(None, ge=0)
    usage_limits: Optional[dict[str, int]] = None
    feature_ids: Optional[FeatureIdList] = None
    is_active: Optional[bool] = None


class PlanRef(ApiModel):
    """Narrow plan projection: features by id only."""
    id: uuid.UUID
    name: str
    monthly_price: float
    annual_price: float
    seat_limit: Optional[int] = None
    usage_limits: dict[str, int] = Field(default_factory=dict)
    feature_ids: list[uuid.UUID] = Field(default_factory=list)
    is_active: bool
    created_at: datetime
    updated_at: datetime


class PlanResponse(PlanRef):
    """Plan with its features expanded, in plan order."""
    features: list[FeatureResponse] = Field(default_factory=list)
