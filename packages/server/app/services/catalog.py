"""
Feature & plan catalog service.

Plans reference features by id through ``plan_features`` (ordered by
``position``). Toggling a feature never rewrites plans; the entitlement
evaluator is what honours ``is_active``.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError, NotFoundError
from app.models.base import utcnow
from app.models.feature import Feature
from app.models.plan import PlanFeature, SubscriptionPlan
from app.models.subscription import OrgSubscription
from tenantcore_shared.schemas.catalog import (
    FeatureCreateRequest,
    FeatureResponse,
    FeatureUpdateRequest,
    PlanCreateRequest,
    PlanResponse,
    PlanUpdateRequest,
)

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Features
# ---------------------------------------------------------------------------

def feature_response(feature: Feature) -> FeatureResponse:
    return FeatureResponse(
        id=feature.id,
        name=feature.name,
        code=feature.code,
        description=feature.description,
        is_active=feature.is_active,
        is_beta=feature.is_beta,
        created_at=feature.created_at,
        updated_at=feature.updated_at,
    )


async def _ensure_code_free(
    code: str, session: AsyncSession, exclude_id: Optional[uuid.UUID] = None
) -> None:
    stmt = select(Feature).where(Feature.code == code)
    if exclude_id is not None:
        stmt = stmt.where(Feature.id != exclude_id)
    result = await session.execute(stmt)
    if result.scalar_one_or_none():
        raise ConflictError(f"Feature code '{code}' is already in use", details={"code": code})


async def _flush_feature(feature: Feature, session: AsyncSession) -> None:
    try:
        await session.flush()
    except IntegrityError:
        # Lost a race on the unique code index.
        raise ConflictError(
            f"Feature code '{feature.code}' is already in use", details={"code": feature.code}
        )


async def create_feature(req: FeatureCreateRequest, session: AsyncSession) -> Feature:
    await _ensure_code_free(req.code, session)

    feature = Feature(
        name=req.name,
        code=req.code,
        description=req.description,
        is_active=req.is_active,
        is_beta=req.is_beta,
    )
    session.add(feature)
    await _flush_feature(feature, session)

    log.info("feature.created", feature_id=str(feature.id), code=feature.code)
    return feature


async def list_features(session: AsyncSession) -> list[Feature]:
    result = await session.execute(select(Feature).order_by(Feature.code))
    return list(result.scalars().all())


async def get_feature(feature_id: uuid.UUID, session: AsyncSession) -> Feature:
    feature = await session.get(Feature, feature_id)
    if not feature:
        raise NotFoundError("Feature not found", details={"feature_id": str(feature_id)})
    return feature


async def update_feature(
    feature_id: uuid.UUID, req: FeatureUpdateRequest, session: AsyncSession
) -> Feature:
    feature = await get_feature(feature_id, session)

    if req.code is not None and req.code != feature.code:
        await _ensure_code_free(req.code, session, exclude_id=feature.id)
        feature.code = req.code
    if req.name is not None:
        feature.name = req.name
    if "description" in req.model_fields_set:
        feature.description = req.description
    if req.is_active is not None:
        feature.is_active = req.is_active
    if req.is_beta is not None:
        feature.is_beta = req.is_beta

    feature.updated_at = utcnow()
    session.add(feature)
    await _flush_feature(feature, session)

    log.info("feature.updated", feature_id=str(feature.id), code=feature.code)
    return feature


async def set_feature_active(
    feature_id: uuid.UUID, active: bool, session: AsyncSession
) -> Feature:
    feature = await get_feature(feature_id, session)
    feature.is_active = active
    feature.updated_at = utcnow()
    session.add(feature)
    await session.flush()

    log.info("feature.activated" if active else "feature.deactivated", feature_id=str(feature.id))
    return feature


async def delete_feature(feature_id: uuid.UUID, session: AsyncSession) -> None:
    """Delete a feature and detach it from every plan."""
    feature = await get_feature(feature_id, session)
    await session.execute(delete(PlanFeature).where(PlanFeature.feature_id == feature.id))
    await session.delete(feature)
    await session.flush()
    log.info("feature.deleted", feature_id=str(feature_id), code=feature.code)


# ---------------------------------------------------------------------------
# Plans
# ---------------------------------------------------------------------------

async def plan_features(plan_id: uuid.UUID, session: AsyncSession) -> list[Feature]:
    """The plan's features in plan order."""
    result = await session.execute(
        select(Feature)
        .join(PlanFeature, PlanFeature.feature_id == Feature.id)
        .where(PlanFeature.plan_id == plan_id)
        .order_by(PlanFeature.position)
    )
    return list(result.scalars().all())


async def plan_response(plan: SubscriptionPlan, session: AsyncSession) -> PlanResponse:
    features = await plan_features(plan.id, session)
    return PlanResponse(
        id=plan.id,
        name=plan.name,
        monthly_price=plan.monthly_price,
        annual_price=plan.annual_price,
        seat_limit=plan.seat_limit,
        usage_limits=plan.usage_limits or {},
        feature_ids=[f.id for f in features],
        is_active=plan.is_active,
        created_at=plan.created_at,
        updated_at=plan.updated_at,
        features=[feature_response(f) for f in features],
    )


async def _set_plan_features(
    plan_id: uuid.UUID, feature_ids: list[uuid.UUID], session: AsyncSession
) -> None:
    if feature_ids:
        result = await session.execute(select(Feature.id).where(Feature.id.in_(feature_ids)))
        found = set(result.scalars().all())
        missing = [str(fid) for fid in feature_ids if fid not in found]
        if missing:
            raise NotFoundError(
                f"Unknown feature id(s): {', '.join(missing)}",
                details={"feature_ids": missing},
            )

    await session.execute(delete(PlanFeature).where(PlanFeature.plan_id == plan_id))
    for position, fid in enumerate(feature_ids):
        session.add(PlanFeature(plan_id=plan_id, feature_id=fid, position=position))
    await session.flush()


async def create_plan(req: PlanCreateRequest, session: AsyncSession) -> SubscriptionPlan:
    plan = SubscriptionPlan(
        name=req.name,
        monthly_price=req.monthly_price,
        annual_price=req.annual_price,
        seat_limit=req.seat_limit,
        usage_limits=dict(req.usage_limits),
        is_active=req.is_active,
    )
    session.add(plan)
    await session.flush()
    await _set_plan_features(plan.id, req.feature_ids, session)

    log.info("plan.created", plan_id=str(plan.id), features=len(req.feature_ids))
    return plan


async def list_plans(session: AsyncSession) -> list[SubscriptionPlan]:
    result = await session.execute(select(SubscriptionPlan).order_by(SubscriptionPlan.name))
    return list(result.scalars().all())


async def get_plan(plan_id: uuid.UUID, session: AsyncSession) -> SubscriptionPlan:
    plan = await session.get(SubscriptionPlan, plan_id)
    if not plan:
        raise NotFoundError("Plan not found", details={"plan_id": str(plan_id)})
    return plan


async def update_plan(
    plan_id: uuid.UUID, req: PlanUpdateRequest, session: AsyncSession
) -> SubscriptionPlan:
    plan = await get_plan(plan_id, session)

    if req.name is not None:
        plan.name = req.name
    if req.monthly_price is not None:
        plan.monthly_price = req.monthly_price
    if req.annual_price is not None:
        plan.annual_price = req.annual_price
    if "seat_limit" in req.model_fields_set:
        plan.seat_limit = req.seat_limit
    if req.usage_limits is not None:
        plan.usage_limits = dict(req.usage_limits)
    if req.is_active is not None:
        plan.is_active = req.is_active
    if req.feature_ids is not None:
        await _set_plan_features(plan.id, req.feature_ids, session)

    plan.updated_at = utcnow()
    session.add(plan)
    await session.flush()

    log.info("plan.updated", plan_id=str(plan.id))
    return plan


async def set_plan_active(
    plan_id: uuid.UUID, active: bool, session: AsyncSession
) -> SubscriptionPlan:
    plan = await get_plan(plan_id, session)
    plan.is_active = active
    plan.updated_at = utcnow()
    session.add(plan)
    await session.flush()

    log.info("plan.activated" if active else "plan.deactivated", plan_id=str(plan.id))
    return plan


async def delete_plan(plan_id: uuid.UUID, session: AsyncSession) -> None:
    """Delete a plan that no subscription (current or past) points at."""
    plan = await get_plan(plan_id, session)
    result = await session.execute(
        select(func.count()).select_from(OrgSubscription).where(OrgSubscription.plan_id == plan.id)
    )
    if result.scalar_one():
        raise ConflictError(
            "Plan is referenced by subscriptions; deactivate it instead",
            details={"plan_id": str(plan.id)},
        )

    await session.execute(delete(PlanFeature).where(PlanFeature.plan_id == plan.id))
    await session.delete(plan)
    await session.flush()
    log.info("plan.deleted", plan_id=str(plan_id))
