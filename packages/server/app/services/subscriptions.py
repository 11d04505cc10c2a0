"""
Subscription ledger service.

"Switching plan" is close-then-insert, never an in-place plan change: the
current row gets ``end_date`` and ``canceled``, then a new row is added.
Both happen in the caller's transaction behind a lock on the organization
row, and the partial unique index rejects any second current row.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.base import utcnow
from app.models.organization import Organization
from app.models.subscription import OrgSubscription
from app.services import catalog as catalog_service
from tenantcore_shared.schemas.subscriptions import (
    CURRENT_STATUSES,
    SubscriptionCreateRequest,
    SubscriptionDetailResponse,
    SubscriptionResponse,
    SubscriptionStatus,
)

log = structlog.get_logger()

_CURRENT_VALUES = [s.value for s in CURRENT_STATUSES]


def to_response(sub: OrgSubscription) -> SubscriptionResponse:
    return SubscriptionResponse(
        id=sub.id,
        organization_id=sub.org_id,
        plan_id=sub.plan_id,
        status=SubscriptionStatus(sub.status),
        start_date=sub.start_date,
        end_date=sub.end_date,
        seats_used=sub.seats_used,
        usage=sub.usage or {},
        created_at=sub.created_at,
        updated_at=sub.updated_at,
    )


async def detail_response(
    sub: OrgSubscription, session: AsyncSession
) -> SubscriptionDetailResponse:
    plan = await catalog_service.get_plan(sub.plan_id, session)
    return SubscriptionDetailResponse(
        **to_response(sub).model_dump(),
        plan=await catalog_service.plan_response(plan, session),
    )


async def _lock_org(org_id: uuid.UUID, session: AsyncSession) -> Organization:
    """Serialize ledger writes per organization."""
    result = await session.execute(
        select(Organization).where(Organization.id == org_id).with_for_update()
    )
    org = result.scalar_one_or_none()
    if not org:
        raise NotFoundError("Organization not found", details={"org_id": str(org_id)})
    return org


async def find_current(
    org_id: uuid.UUID, session: AsyncSession
) -> Optional[OrgSubscription]:
    result = await session.execute(
        select(OrgSubscription).where(
            OrgSubscription.org_id == org_id,
            OrgSubscription.status.in_(_CURRENT_VALUES),
        )
    )
    return result.scalar_one_or_none()


def _close(sub: OrgSubscription, now: datetime) -> None:
    sub.status = SubscriptionStatus.CANCELED.value
    sub.end_date = now
    sub.updated_at = now


async def create_or_update_subscription(
    req: SubscriptionCreateRequest,
    session: AsyncSession,
    now: Optional[datetime] = None,
) -> OrgSubscription:
    """Subscribe an org to a plan, closing any current subscription first."""
    now = now or utcnow()
    if req.status not in CURRENT_STATUSES:
        raise ValidationError(
            f"New subscriptions must be 'active' or 'trial', not '{req.status.value}'"
        )

    await _lock_org(req.organization_id, session)
    plan = await catalog_service.get_plan(req.plan_id, session)
    if plan.seat_limit is not None and req.seats_used > plan.seat_limit:
        raise ValidationError(
            f"seatsUsed ({req.seats_used}) exceeds the plan's seat limit ({plan.seat_limit})"
        )

    previous = await find_current(req.organization_id, session)
    if previous:
        _close(previous, now)
        session.add(previous)
        # Flush the close before the insert so the unique index never sees two current rows.
        await session.flush()

    sub = OrgSubscription(
        org_id=req.organization_id,
        plan_id=plan.id,
        status=req.status.value,
        start_date=now,
        seats_used=req.seats_used,
        usage={},
    )
    session.add(sub)
    try:
        await session.flush()
    except IntegrityError:
        raise ConflictError(
            "Organization already has a current subscription",
            details={"org_id": str(req.organization_id)},
        )

    if previous:
        log.info(
            "subscription.switched",
            org_id=str(req.organization_id),
            from_plan=str(previous.plan_id),
            to_plan=str(plan.id),
            subscription_id=str(sub.id),
        )
    else:
        log.info(
            "subscription.created",
            org_id=str(req.organization_id),
            plan_id=str(plan.id),
            subscription_id=str(sub.id),
            status=sub.status,
        )
    return sub


async def cancel_subscription(
    org_id: uuid.UUID,
    session: AsyncSession,
    now: Optional[datetime] = None,
) -> OrgSubscription:
    now = now or utcnow()
    await _lock_org(org_id, session)
    sub = await find_current(org_id, session)
    if not sub:
        raise NotFoundError(
            "Organization has no active subscription", details={"org_id": str(org_id)}
        )

    _close(sub, now)
    session.add(sub)
    await session.flush()

    log.info("subscription.canceled", org_id=str(org_id), subscription_id=str(sub.id))
    return sub


async def get_active(org_id: uuid.UUID, session: AsyncSession) -> OrgSubscription:
    sub = await find_current(org_id, session)
    if not sub:
        raise NotFoundError(
            "Organization has no active subscription", details={"org_id": str(org_id)}
        )
    return sub


async def list_history(org_id: uuid.UUID, session: AsyncSession) -> list[OrgSubscription]:
    """Every subscription the org has had, most recent first."""
    result = await session.execute(
        select(OrgSubscription)
        .where(OrgSubscription.org_id == org_id)
        .order_by(OrgSubscription.start_date.desc(), OrgSubscription.created_at.desc())
    )
    return list(result.scalars().all())


async def record_usage(
    org_id: uuid.UUID,
    key: str,
    amount: int,
    session: AsyncSession,
) -> OrgSubscription:
    """Add ``amount`` to a usage counter on the current subscription, within plan limits."""
    await _lock_org(org_id, session)
    sub = await get_active(org_id, session)
    plan = await catalog_service.get_plan(sub.plan_id, session)

    usage = dict(sub.usage or {})
    new_value = usage.get(key, 0) + amount
    limit = (plan.usage_limits or {}).get(key)
    if limit is not None and new_value > limit:
        raise ConflictError(
            f"Usage limit for '{key}' exceeded ({new_value} > {limit})",
            details={"org_id": str(org_id), "key": key},
        )

    usage[key] = new_value
    sub.usage = usage
    sub.updated_at = utcnow()
    session.add(sub)
    await session.flush()

    log.info("subscription.usage_recorded", org_id=str(org_id), key=key, value=new_value)
    return sub
