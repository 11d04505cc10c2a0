"""
Team API endpoints.

GET    /api/v1/teams?orgId=   — List teams (optionally for one org)
POST   /api/v1/teams          — Create a team inside an org
GET    /api/v1/teams/{teamId} — Get a team
"""

from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import teams as team_service
from tenantcore_shared.schemas.organizations import TeamCreateRequest, TeamResponse

router = APIRouter()


@router.get("", response_model=list[TeamResponse])
async def list_teams(
    org_id: Optional[uuid.UUID] = Query(default=None, alias="orgId"),
    session: AsyncSession = Depends(get_session),
):
    teams = await team_service.list_teams(session, org_id=org_id)
    return [team_service.to_response(t) for t in teams]


@router.post("", response_model=TeamResponse, status_code=201)
async def create_team(
    body: TeamCreateRequest,
    session: AsyncSession = Depends(get_session),
):
    team = await team_service.create_team(body, session)
    return team_service.to_response(team)


@router.get("/{teamId}", response_model=TeamResponse)
async def get_team(teamId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    team = await team_service.get_team(teamId, session)
    return team_service.to_response(team)
