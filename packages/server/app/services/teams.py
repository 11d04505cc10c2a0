"""
Team service — sub-groupings inside an organization that invitations target.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFoundError
from app.models.team import Team, TeamUser
from app.services import organizations as org_service
from tenantcore_shared.schemas.organizations import TeamCreateRequest, TeamResponse

log = structlog.get_logger()


def to_response(team: Team) -> TeamResponse:
    return TeamResponse(
        id=team.id,
        organization_id=team.org_id,
        name=team.name,
        description=team.description,
        created_at=team.created_at,
    )


async def create_team(req: TeamCreateRequest, session: AsyncSession) -> Team:
    await org_service.get_org(req.organization_id, session)

    team = Team(org_id=req.organization_id, name=req.name, description=req.description)
    session.add(team)
    await session.flush()

    log.info("team.created", team_id=str(team.id), org_id=str(team.org_id))
    return team


async def get_team(team_id: uuid.UUID, session: AsyncSession) -> Team:
    team = await session.get(Team, team_id)
    if not team:
        raise NotFoundError("Team not found", details={"team_id": str(team_id)})
    return team


async def list_teams(
    session: AsyncSession, org_id: Optional[uuid.UUID] = None
) -> list[Team]:
    stmt = select(Team).order_by(Team.name)
    if org_id is not None:
        stmt = stmt.where(Team.org_id == org_id)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def ensure_team_member(
    team_id: uuid.UUID,
    user_id: uuid.UUID,
    role: Optional[str],
    session: AsyncSession,
) -> TeamUser:
    """Return the (team, user) row, creating it if the user is not on the team yet."""
    existing = await session.get(TeamUser, (team_id, user_id))
    if existing:
        return existing

    member = TeamUser(team_id=team_id, user_id=user_id, role=role)
    session.add(member)
    await session.flush()
    log.info("team.member_added", team_id=str(team_id), user_id=str(user_id))
    return member
