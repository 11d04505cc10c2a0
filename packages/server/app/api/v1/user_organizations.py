"""
Membership registry API endpoints.

POST   /api/v1/user-organizations/add                  — Add a user to an org
POST   /api/v1/user-organizations/remove               — Remove a user (idempotent)
GET    /api/v1/user-organizations/user/{userId}        — Orgs a user belongs to
GET    /api/v1/user-organizations/org/{organizationId} — Users in an org
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import memberships as membership_service
from tenantcore_shared.schemas.memberships import (
    MembershipAddRequest,
    MembershipRemoveRequest,
    MembershipRemoveResponse,
    MembershipResponse,
    MembershipWithOrg,
    MembershipWithUser,
)

router = APIRouter()


@router.post("/add", response_model=MembershipResponse, status_code=201)
async def add_user_to_org(
    body: MembershipAddRequest,
    session: AsyncSession = Depends(get_session),
):
    """Add a user to an organization. 409 if they are already a member."""
    membership = await membership_service.add_member(
        body.user_id, body.organization_id, session, role_in_org=body.role_in_org
    )
    return membership_service.to_response(membership)


@router.post("/remove", response_model=MembershipRemoveResponse)
async def remove_user_from_org(
    body: MembershipRemoveRequest,
    session: AsyncSession = Depends(get_session),
):
    """Remove a user from an organization. Removing a non-member also succeeds."""
    await membership_service.remove_member(body.user_id, body.organization_id, session)
    return MembershipRemoveResponse(success=True)


@router.get("/user/{userId}", response_model=list[MembershipWithOrg])
async def list_orgs_for_user(userId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    return await membership_service.list_orgs_for_user(userId, session)


@router.get("/org/{organizationId}", response_model=list[MembershipWithUser])
async def list_users_in_org(
    organizationId: uuid.UUID, session: AsyncSession = Depends(get_session)
):
    return await membership_service.list_users_in_org(organizationId, session)
