"""
Entitlement evaluator — "can organization X use feature Y right now".

Read-only. An org is entitled to a feature when its current subscription's
plan is active, the plan includes the feature, and the feature is globally
active.
"""

from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.feature import Feature
from app.models.plan import PlanFeature, SubscriptionPlan
from app.models.subscription import OrgSubscription
from tenantcore_shared.schemas.subscriptions import CURRENT_STATUSES

_CURRENT_VALUES = [s.value for s in CURRENT_STATUSES]


def _entitled_features(org_id: uuid.UUID):
    return (
        select(Feature.code)
        .join(PlanFeature, PlanFeature.feature_id == Feature.id)
        .join(SubscriptionPlan, SubscriptionPlan.id == PlanFeature.plan_id)
        .join(OrgSubscription, OrgSubscription.plan_id == SubscriptionPlan.id)
        .where(
            OrgSubscription.org_id == org_id,
            OrgSubscription.status.in_(_CURRENT_VALUES),
            SubscriptionPlan.is_active.is_(True),
            Feature.is_active.is_(True),
        )
    )


async def has_feature(org_id: uuid.UUID, feature_code: str, session: AsyncSession) -> bool:
    result = await session.execute(
        _entitled_features(org_id).where(Feature.code == feature_code).limit(1)
    )
    return result.first() is not None


async def list_entitlements(org_id: uuid.UUID, session: AsyncSession) -> list[str]:
    """Feature codes the org is currently entitled to, in plan order."""
    result = await session.execute(_entitled_features(org_id).order_by(PlanFeature.position))
    return list(result.scalars().all())
