"""
Feature catalog API endpoints.

GET    /api/v1/features                  — List features
POST   /api/v1/features                  — Create a feature
GET    /api/v1/features/{id}             — Get a feature
PATCH  /api/v1/features/{id}             — Update a feature
DELETE /api/v1/features/{id}             — Delete a feature (detaches it from plans)
POST   /api/v1/features/{id}/activate    — Make globally available
POST   /api/v1/features/{id}/deactivate  — Withdraw globally
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import catalog as catalog_service
from tenantcore_shared.schemas.catalog import (
    FeatureCreateRequest,
    FeatureResponse,
    FeatureUpdateRequest,
)
from tenantcore_shared.schemas.common import MessageResponse

router = APIRouter()


@router.get("", response_model=list[FeatureResponse])
async def list_features(session: AsyncSession = Depends(get_session)):
    features = await catalog_service.list_features(session)
    return [catalog_service.feature_response(f) for f in features]


@router.post("", response_model=FeatureResponse, status_code=201)
async def create_feature(
    body: FeatureCreateRequest,
    session: AsyncSession = Depends(get_session),
):
    """Create a feature. 409 if the code is already taken."""
    feature = await catalog_service.create_feature(body, session)
    return catalog_service.feature_response(feature)


@router.get("/{featureId}", response_model=FeatureResponse)
async def get_feature(featureId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    feature = await catalog_service.get_feature(featureId, session)
    return catalog_service.feature_response(feature)


@router.patch("/{featureId}", response_model=FeatureResponse)
async def update_feature(
    featureId: uuid.UUID,
    body: FeatureUpdateRequest,
    session: AsyncSession = Depends(get_session),
):
    feature = await catalog_service.update_feature(featureId, body, session)
    return catalog_service.feature_response(feature)


@router.delete("/{featureId}", response_model=MessageResponse)
async def delete_feature(featureId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    await catalog_service.delete_feature(featureId, session)
    return MessageResponse(message="Feature deleted")


@router.post("/{featureId}/activate", response_model=FeatureResponse)
async def activate_feature(featureId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    feature = await catalog_service.set_feature_active(featureId, True, session)
    return catalog_service.feature_response(feature)


@router.post("/{featureId}/deactivate", response_model=FeatureResponse)
async def deactivate_feature(featureId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    feature = await catalog_service.set_feature_active(featureId, False, session)
    return catalog_service.feature_response(feature)
