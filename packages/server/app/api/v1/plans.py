"""
Subscription plan API endpoints.

GET    /api/v1/plans                  — List plans (features expanded)
POST   /api/v1/plans                  — Create a plan
GET    /api/v1/plans/{id}             — Get a plan
PATCH  /api/v1/plans/{id}             — Update a plan (featureIds replaces the set)
DELETE /api/v1/plans/{id}             — Delete an unreferenced plan
POST   /api/v1/plans/{id}/activate    — Mark the plan usable
POST   /api/v1/plans/{id}/deactivate  — Withdraw the plan
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import catalog as catalog_service
from tenantcore_shared.schemas.catalog import PlanCreateRequest, PlanResponse, PlanUpdateRequest
from tenantcore_shared.schemas.common import MessageResponse

router = APIRouter()


@router.get("", response_model=list[PlanResponse])
async def list_plans(session: AsyncSession = Depends(get_session)):
    plans = await catalog_service.list_plans(session)
    return [await catalog_service.plan_response(p, session) for p in plans]


@router.post("", response_model=PlanResponse, status_code=201)
async def create_plan(body: PlanCreateRequest, session: AsyncSession = Depends(get_session)):
    plan = await catalog_service.create_plan(body, session)
    return await catalog_service.plan_response(plan, session)


@router.get("/{planId}", response_model=PlanResponse)
async def get_plan(planId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    plan = await catalog_service.get_plan(planId, session)
    return await catalog_service.plan_response(plan, session)


@router.patch("/{planId}", response_model=PlanResponse)
async def update_plan(
    planId: uuid.UUID,
    body: PlanUpdateRequest,
    session: AsyncSession = Depends(get_session),
):
    plan = await catalog_service.update_plan(planId, body, session)
    return await catalog_service.plan_response(plan, session)


@router.delete("/{planId}", response_model=MessageResponse)
async def delete_plan(planId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    """Delete a plan. 409 if any subscription references it."""
    await catalog_service.delete_plan(planId, session)
    return MessageResponse(message="Plan deleted")


@router.post("/{planId}/activate", response_model=PlanResponse)
async def activate_plan(planId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    plan = await catalog_service.set_plan_active(planId, True, session)
    return await catalog_service.plan_response(plan, session)


@router.post("/{planId}/deactivate", response_model=PlanResponse)
async def deactivate_plan(planId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    plan = await catalog_service.set_plan_active(planId, False, session)
    return await catalog_service.plan_response(plan, session)
