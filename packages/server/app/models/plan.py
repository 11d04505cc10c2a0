"""Subscription plans and their ordered feature links."""

from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class SubscriptionPlan(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "subscription_plans"

    name: str = Field(nullable=False)
    monthly_price: float = Field(default=0, nullable=False)
    annual_price: float = Field(default=0, nullable=False)
    seat_limit: Optional[int] = None
    usage_limits: dict = Field(default_factory=dict, sa_type=sa.JSON, nullable=False)
    is_active: bool = Field(default=True, nullable=False)


class PlanFeature(SQLModel, table=True):
    __tablename__ = "plan_features"

    plan_id: uuid.UUID = Field(foreign_key="subscription_plans.id", primary_key=True)
    feature_id: uuid.UUID = Field(foreign_key="features.id", primary_key=True, index=True)
    position: int = Field(default=0, nullable=False)
