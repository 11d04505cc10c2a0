"""
Organization subscription API endpoints.

POST   /api/v1/org-subs                                   — Subscribe / switch plan
POST   /api/v1/org-subs/cancel                            — Cancel the current subscription
POST   /api/v1/org-subs/usage                             — Record usage on the current subscription
GET    /api/v1/org-subs/active/{orgId}                    — Current subscription (plan expanded)
GET    /api/v1/org-subs/list/{orgId}                      — History, most recent first
GET    /api/v1/org-subs/has-feature?orgId=&featureCode=   — Entitlement check
GET    /api/v1/org-subs/features/{orgId}                  — All entitled feature codes
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import entitlements as entitlement_service
from app.services import subscriptions as subscription_service
from tenantcore_shared.schemas.subscriptions import (
    EntitlementsResponse,
    HasFeatureResponse,
    SubscriptionCancelRequest,
    SubscriptionCreateRequest,
    SubscriptionDetailResponse,
    SubscriptionResponse,
    UsageRecordRequest,
)

router = APIRouter()


@router.post("", response_model=SubscriptionResponse, status_code=201)
async def create_or_update_subscription(
    body: SubscriptionCreateRequest,
    session: AsyncSession = Depends(get_session),
):
    """Subscribe an org to a plan. Any current subscription is closed first."""
    sub = await subscription_service.create_or_update_subscription(body, session)
    return subscription_service.to_response(sub)


@router.post("/cancel", response_model=SubscriptionResponse)
async def cancel_subscription(
    body: SubscriptionCancelRequest,
    session: AsyncSession = Depends(get_session),
):
    sub = await subscription_service.cancel_subscription(body.org_id, session)
    return subscription_service.to_response(sub)


@router.post("/usage", response_model=SubscriptionResponse)
async def record_usage(
    body: UsageRecordRequest,
    session: AsyncSession = Depends(get_session),
):
    sub = await subscription_service.record_usage(body.org_id, body.key, body.amount, session)
    return subscription_service.to_response(sub)


@router.get("/has-feature", response_model=HasFeatureResponse)
async def has_feature(
    org_id: uuid.UUID = Query(alias="orgId"),
    feature_code: str = Query(alias="featureCode", min_length=1),
    session: AsyncSession = Depends(get_session),
):
    allowed = await entitlement_service.has_feature(org_id, feature_code, session)
    return HasFeatureResponse(has_feature=allowed)


@router.get("/active/{orgId}", response_model=SubscriptionDetailResponse)
async def get_active_subscription(orgId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    sub = await subscription_service.get_active(orgId, session)
    return await subscription_service.detail_response(sub, session)


@router.get("/list/{orgId}", response_model=list[SubscriptionResponse])
async def list_subscriptions(orgId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    history = await subscription_service.list_history(orgId, session)
    return [subscription_service.to_response(sub) for sub in history]


@router.get("/features/{orgId}", response_model=EntitlementsResponse)
async def list_entitlements(orgId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    codes = await entitlement_service.list_entitlements(orgId, session)
    return EntitlementsResponse(organization_id=orgId, feature_codes=codes)
