"""
Organization (tenant directory) API endpoints.

GET    /api/v1/organizations          — List organizations
POST   /api/v1/organizations          — Create an organization
GET    /api/v1/organizations/{orgId}  — Get organization details
PATCH  /api/v1/organizations/{orgId}  — Update name/description/settings
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import organizations as org_service
from tenantcore_shared.schemas.organizations import (
    OrgCreateRequest,
    OrgResponse,
    OrgUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=list[OrgResponse])
async def list_orgs(session: AsyncSession = Depends(get_session)):
    orgs = await org_service.list_orgs(session)
    return [org_service.to_response(org) for org in orgs]


@router.post("", response_model=OrgResponse, status_code=201)
async def create_org(
    body: OrgCreateRequest,
    session: AsyncSession = Depends(get_session),
):
    """Create a new organization. Settings default per OrgSettings."""
    org = await org_service.create_org(body, session)
    return org_service.to_response(org)


@router.get("/{orgId}", response_model=OrgResponse)
async def get_org(orgId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    org = await org_service.get_org(orgId, session)
    return org_service.to_response(org)


@router.patch("/{orgId}", response_model=OrgResponse)
async def update_org(
    orgId: uuid.UUID,
    body: OrgUpdateRequest,
    session: AsyncSession = Depends(get_session),
):
    """Update org name, description or settings. Settings are deep-merged."""
    org = await org_service.update_org(orgId, body, session)
    return org_service.to_response(org)
