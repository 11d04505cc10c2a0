"""
Membership registry — the (user, organization) pivot that grants access.

At most one membership exists per pair. Removal is idempotent: removing an
absent pair is a successful no-op, so an add that wins a race against a
remove stays authoritative.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import ConflictError
from app.models.organization import Organization
from app.models.user import User
from app.models.user_org import UserOrg
from app.services import organizations as org_service
from app.services import users as user_service
from tenantcore_shared.schemas.common import DEFAULT_ROLE
from tenantcore_shared.schemas.memberships import (
    MembershipResponse,
    MembershipWithOrg,
    MembershipWithUser,
)
from tenantcore_shared.schemas.organizations import OrgRef

log = structlog.get_logger()


def to_response(membership: UserOrg) -> MembershipResponse:
    return MembershipResponse(
        user_id=membership.user_id,
        organization_id=membership.org_id,
        role_in_org=membership.role,
        created_at=membership.created_at,
    )


async def get_membership(
    user_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> Optional[UserOrg]:
    return await session.get(UserOrg, (user_id, org_id))


async def add_member(
    user_id: uuid.UUID,
    org_id: uuid.UUID,
    session: AsyncSession,
    role_in_org: Optional[str] = None,
) -> UserOrg:
    """Add a user to an org. Raises Conflict if they are already a member."""
    await user_service.get_user(user_id, session)
    await org_service.get_org(org_id, session)

    if await get_membership(user_id, org_id, session):
        raise ConflictError(
            "User is already a member of this organization",
            details={"user_id": str(user_id), "org_id": str(org_id)},
        )

    membership = UserOrg(user_id=user_id, org_id=org_id, role=role_in_org or DEFAULT_ROLE)
    session.add(membership)
    try:
        await session.flush()
    except IntegrityError:
        # A concurrent add for the same pair committed first.
        raise ConflictError(
            "User is already a member of this organization",
            details={"user_id": str(user_id), "org_id": str(org_id)},
        )

    log.info("membership.added", user_id=str(user_id), org_id=str(org_id), role=membership.role)
    return membership


async def ensure_member(
    user_id: uuid.UUID,
    org_id: uuid.UUID,
    session: AsyncSession,
    role_in_org: Optional[str] = None,
) -> UserOrg:
    """Return the existing membership untouched, or create one."""
    existing = await get_membership(user_id, org_id, session)
    if existing:
        return existing

    membership = UserOrg(user_id=user_id, org_id=org_id, role=role_in_org or DEFAULT_ROLE)
    try:
        async with session.begin_nested():
            session.add(membership)
    except IntegrityError:
        # A concurrent add for the same pair committed first; theirs stands.
        existing = await get_membership(user_id, org_id, session)
        if existing is None:
            raise
        log.info("membership.reused", user_id=str(user_id), org_id=str(org_id), role=existing.role)
        return existing

    log.info("membership.added", user_id=str(user_id), org_id=str(org_id), role=membership.role)
    return membership


async def remove_member(
    user_id: uuid.UUID, org_id: uuid.UUID, session: AsyncSession
) -> bool:
    """Remove a membership. Returns whether a row was actually deleted."""
    result = await session.execute(
        delete(UserOrg).where(UserOrg.user_id == user_id, UserOrg.org_id == org_id)
    )
    await session.flush()
    removed = bool(result.rowcount)
    log.info("membership.removed", user_id=str(user_id), org_id=str(org_id), removed=removed)
    return removed


async def list_orgs_for_user(
    user_id: uuid.UUID, session: AsyncSession
) -> list[MembershipWithOrg]:
    """All organizations a user belongs to, with their role."""
    result = await session.execute(
        select(UserOrg, Organization)
        .join(Organization, Organization.id == UserOrg.org_id)
        .where(UserOrg.user_id == user_id)
        .order_by(Organization.name)
    )
    return [
        MembershipWithOrg(
            **to_response(membership).model_dump(),
            organization=OrgRef(id=org.id, name=org.name),
        )
        for membership, org in result.all()
    ]


async def list_users_in_org(
    org_id: uuid.UUID, session: AsyncSession
) -> list[MembershipWithUser]:
    """All members of an organization."""
    result = await session.execute(
        select(UserOrg, User)
        .join(User, User.id == UserOrg.user_id)
        .where(UserOrg.org_id == org_id)
        .order_by(User.email)
    )
    return [
        MembershipWithUser(
            **to_response(membership).model_dump(),
            user=user_service.to_ref(user),
        )
        for membership, user in result.all()
    ]
