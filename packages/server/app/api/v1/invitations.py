"""
Invitation API endpoints.

POST   /api/v1/invitations                  — Create an invitation
GET    /api/v1/invitations?teamId=&orgId=   — List invitations
GET    /api/v1/invitations/{id}             — Get an invitation
PATCH  /api/v1/invitations/{id}             — Edit a pending invitation
DELETE /api/v1/invitations/{id}             — Purge an invitation
POST   /api/v1/invitations/resend/{id}      — New token + expiry (pending only)
POST   /api/v1/invitations/cancel/{id}      — Cancel (pending only)
POST   /api/v1/invitations/accept/{token}   — Accept and join the team's org
POST   /api/v1/invitations/decline/{token}  — Decline
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import invitations as invitation_service
from app.services import memberships as membership_service
from app.services import organizations as org_service
from app.services import teams as team_service
from app.services import users as user_service
from tenantcore_shared.schemas.common import MessageResponse
from tenantcore_shared.schemas.invitations import (
    InvitationAcceptRequest,
    InvitationAcceptResponse,
    InvitationCreateRequest,
    InvitationResponse,
    InvitationStatus,
    InvitationUpdateRequest,
)

router = APIRouter()


@router.post("", response_model=InvitationResponse, status_code=201)
async def create_invitation(
    body: InvitationCreateRequest,
    session: AsyncSession = Depends(get_session),
):
    """Invite an email address to a team. Expiry defaults to the org's setting."""
    hours = body.expires_in_hours
    if hours is None:
        team = await team_service.get_team(body.team_id, session)
        hours = await org_service.invitation_expiration_hours(team.org_id, session)
    inv = await invitation_service.create_invitation(body, hours, session)
    return invitation_service.to_response(inv)


@router.get("", response_model=list[InvitationResponse])
async def list_invitations(
    team_id: Optional[uuid.UUID] = Query(default=None, alias="teamId"),
    org_id: Optional[uuid.UUID] = Query(default=None, alias="orgId"),
    status: Optional[InvitationStatus] = Query(default=None),
    session: AsyncSession = Depends(get_session),
):
    invitations = await invitation_service.list_invitations(
        session, team_id=team_id, org_id=org_id, status=status
    )
    return [invitation_service.to_response(inv) for inv in invitations]


@router.get("/{invitationId}", response_model=InvitationResponse)
async def get_invitation(invitationId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    inv = await invitation_service.get_invitation(invitationId, session)
    return invitation_service.to_response(inv)


@router.patch("/{invitationId}", response_model=InvitationResponse)
async def update_invitation(
    invitationId: uuid.UUID,
    body: InvitationUpdateRequest,
    session: AsyncSession = Depends(get_session),
):
    inv = await invitation_service.update_invitation(invitationId, body, session)
    return invitation_service.to_response(inv)


@router.delete("/{invitationId}", response_model=MessageResponse)
async def delete_invitation(invitationId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    await invitation_service.delete_invitation(invitationId, session)
    return MessageResponse(message="Invitation deleted")


@router.post("/resend/{invitationId}", response_model=InvitationResponse)
async def resend_invitation(
    invitationId: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    inv = await invitation_service.get_invitation(invitationId, session)
    hours = await org_service.invitation_expiration_hours(inv.org_id, session)
    inv = await invitation_service.resend_invitation(invitationId, hours, session)
    return invitation_service.to_response(inv)


@router.post("/cancel/{invitationId}", response_model=InvitationResponse)
async def cancel_invitation(
    invitationId: uuid.UUID,
    session: AsyncSession = Depends(get_session),
):
    inv = await invitation_service.cancel_invitation(invitationId, session)
    return invitation_service.to_response(inv)


@router.post("/accept/{token}", response_model=InvitationAcceptResponse)
async def accept_invitation(
    token: str,
    body: Optional[InvitationAcceptRequest] = Body(default=None),
    session: AsyncSession = Depends(get_session),
):
    """Accept an invitation. 410 if it has lapsed, 409 if it is no longer pending."""
    inv, user, membership = await invitation_service.accept_invitation(
        token, body or InvitationAcceptRequest(), session
    )
    return InvitationAcceptResponse(
        message="Invitation accepted",
        invitation=invitation_service.to_response(inv),
        user=user_service.to_response(user),
        membership=membership_service.to_response(membership),
    )


@router.post("/decline/{token}", response_model=InvitationResponse)
async def decline_invitation(token: str, session: AsyncSession = Depends(get_session)):
    inv = await invitation_service.decline_invitation(token, session)
    return invitation_service.to_response(inv)
