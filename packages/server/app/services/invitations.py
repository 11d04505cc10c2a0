"""
Invitation lifecycle service.

States: pending -> accepted | declined | cancelled | expired (all terminal).
Expiry is evaluated lazily on the token-holder paths (accept, decline) and
by the periodic sweep; there is no per-invitation timer.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta
from typing import Optional

import structlog
from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import generate_invitation_token, hash_password
from app.core.errors import ExpiredError, InvalidStateError, NotFoundError
from app.models.base import as_utc, utcnow
from app.models.invitation import Invitation
from app.models.user import User
from app.models.user_org import UserOrg
from app.services import memberships as membership_service
from app.services import teams as team_service
from app.services import users as user_service
from tenantcore_shared.schemas.invitations import (
    InvitationAcceptRequest,
    InvitationCreateRequest,
    InvitationResponse,
    InvitationStatus,
    InvitationUpdateRequest,
    validate_transition,
)

log = structlog.get_logger()


def to_response(inv: Invitation) -> InvitationResponse:
    return InvitationResponse(
        id=inv.id,
        email=inv.email,
        team_id=inv.team_id,
        organization_id=inv.org_id,
        role_in_team=inv.role_in_team,
        invitation_token=inv.token,
        status=InvitationStatus(inv.status),
        expires_at=inv.expires_at,
        created_at=inv.created_at,
        updated_at=inv.updated_at,
    )


def _expiry(now: datetime, expiration_hours: Optional[int]) -> Optional[datetime]:
    if expiration_hours is None:
        return None
    return now + timedelta(hours=expiration_hours)


def is_due(inv: Invitation, now: datetime) -> bool:
    """True once a pending invitation's expiresAt has been reached."""
    expires_at = as_utc(inv.expires_at)
    return expires_at is not None and now >= expires_at


def _require_transition(inv: Invitation, target: InvitationStatus) -> None:
    valid, msg = validate_transition(InvitationStatus(inv.status), target)
    if not valid:
        raise InvalidStateError(msg, details={"invitation_id": str(inv.id)})


async def _claim(
    inv: Invitation, target: InvitationStatus, now: datetime, session: AsyncSession
) -> None:
    """Move a pending invitation to ``target``; only one concurrent caller can win."""
    _require_transition(inv, target)
    result = await session.execute(
        update(Invitation)
        .where(
            Invitation.id == inv.id,
            Invitation.status == InvitationStatus.PENDING.value,
        )
        .values(status=target.value, updated_at=now)
    )
    if result.rowcount != 1:
        raise InvalidStateError(
            "Invitation is no longer pending",
            details={"invitation_id": str(inv.id)},
        )
    await session.refresh(inv)


async def _expire_and_raise(inv: Invitation, now: datetime, session: AsyncSession) -> None:
    """Persist the lazy pending -> expired move, then fail the caller with Expired.

    Committed here so the transition survives the caller's rollback.
    """
    await _claim(inv, InvitationStatus.EXPIRED, now, session)
    await session.commit()
    log.info("invitation.expired", invitation_id=str(inv.id), org_id=str(inv.org_id))
    raise ExpiredError(
        "Invitation has expired",
        details={"invitation_id": str(inv.id)},
    )


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

async def get_invitation(invitation_id: uuid.UUID, session: AsyncSession) -> Invitation:
    inv = await session.get(Invitation, invitation_id)
    if not inv:
        raise NotFoundError("Invitation not found", details={"invitation_id": str(invitation_id)})
    return inv


async def _get_by_token(token: str, session: AsyncSession) -> Invitation:
    result = await session.execute(
        select(Invitation).where(Invitation.token == token).with_for_update()
    )
    inv = result.scalar_one_or_none()
    if not inv:
        raise NotFoundError("Invitation not found")
    return inv


async def list_invitations(
    session: AsyncSession,
    *,
    team_id: Optional[uuid.UUID] = None,
    org_id: Optional[uuid.UUID] = None,
    status: Optional[InvitationStatus] = None,
) -> list[Invitation]:
    stmt = select(Invitation).order_by(Invitation.created_at.desc())
    if team_id is not None:
        stmt = stmt.where(Invitation.team_id == team_id)
    if org_id is not None:
        stmt = stmt.where(Invitation.org_id == org_id)
    if status is not None:
        stmt = stmt.where(Invitation.status == status.value)
    result = await session.execute(stmt)
    return list(result.scalars().all())


# ---------------------------------------------------------------------------
# Administrative operations
# ---------------------------------------------------------------------------

async def create_invitation(
    req: InvitationCreateRequest,
    expiration_hours: Optional[int],
    session: AsyncSession,
    now: Optional[datetime] = None,
) -> Invitation:
    """Issue a pending invitation to a team.

    ``expiration_hours`` is the caller-resolved lifetime (None = never expires).
    """
    now = now or utcnow()
    team = await team_service.get_team(req.team_id, session)

    inv = Invitation(
        org_id=team.org_id,
        team_id=team.id,
        email=user_service.normalize_email(req.email),
        role_in_team=req.role_in_team,
        token=generate_invitation_token(),
        status=InvitationStatus.PENDING.value,
        expires_at=_expiry(now, expiration_hours),
    )
    session.add(inv)
    await session.flush()

    log.info(
        "invitation.created",
        invitation_id=str(inv.id),
        org_id=str(inv.org_id),
        team_id=str(inv.team_id),
        expires_at=str(inv.expires_at),
    )
    return inv


async def resend_invitation(
    invitation_id: uuid.UUID,
    expiration_hours: Optional[int],
    session: AsyncSession,
    now: Optional[datetime] = None,
) -> Invitation:
    """Issue a fresh token and expiry for a pending invitation."""
    now = now or utcnow()
    inv = await get_invitation(invitation_id, session)
    if inv.status != InvitationStatus.PENDING.value:
        raise InvalidStateError(
            f"Only pending invitations can be resent (status is '{inv.status}')",
            details={"invitation_id": str(inv.id)},
        )

    inv.token = generate_invitation_token()
    inv.expires_at = _expiry(now, expiration_hours)
    inv.updated_at = now
    session.add(inv)
    await session.flush()

    log.info("invitation.resent", invitation_id=str(inv.id), expires_at=str(inv.expires_at))
    return inv


async def update_invitation(
    invitation_id: uuid.UUID,
    req: InvitationUpdateRequest,
    session: AsyncSession,
) -> Invitation:
    """Edit a pending invitation. Terminal invitations are read-only."""
    inv = await get_invitation(invitation_id, session)
    if inv.status != InvitationStatus.PENDING.value:
        raise InvalidStateError(
            f"Invitation is '{inv.status}' and can no longer be edited",
            details={"invitation_id": str(inv.id)},
        )

    fields = req.model_fields_set
    if req.email is not None:
        inv.email = user_service.normalize_email(req.email)
    if "role_in_team" in fields:
        inv.role_in_team = req.role_in_team
    if "expires_at" in fields:
        inv.expires_at = req.expires_at

    inv.updated_at = utcnow()
    session.add(inv)
    await session.flush()

    log.info("invitation.updated", invitation_id=str(inv.id), fields=sorted(fields))
    return inv


async def cancel_invitation(
    invitation_id: uuid.UUID,
    session: AsyncSession,
    now: Optional[datetime] = None,
) -> Invitation:
    now = now or utcnow()
    inv = await get_invitation(invitation_id, session)
    await _claim(inv, InvitationStatus.CANCELLED, now, session)
    log.info("invitation.cancelled", invitation_id=str(inv.id), org_id=str(inv.org_id))
    return inv


async def delete_invitation(invitation_id: uuid.UUID, session: AsyncSession) -> None:
    """Purge an invitation in any state."""
    inv = await get_invitation(invitation_id, session)
    await session.delete(inv)
    await session.flush()
    log.info("invitation.deleted", invitation_id=str(invitation_id))


# ---------------------------------------------------------------------------
# Token-holder operations
# ---------------------------------------------------------------------------

async def _resolve_invitee(
    inv: Invitation, req: InvitationAcceptRequest, session: AsyncSession
) -> User:
    """Reuse the user with the invited email, or create one from the profile fields."""
    user = await user_service.find_by_email(inv.email, session)
    if user is None:
        user = User(
            email=inv.email,
            first_name=req.first_name,
            last_name=req.last_name,
            password_hash=hash_password(req.password) if req.password else None,
        )
        session.add(user)
        await session.flush()
        log.info("user.created", user_id=str(user.id), via="invitation")
        return user

    if req.first_name and not user.first_name:
        user.first_name = req.first_name
    if req.last_name and not user.last_name:
        user.last_name = req.last_name
    if req.password and not user.password_hash:
        user.password_hash = hash_password(req.password)
    session.add(user)
    await session.flush()
    return user


async def accept_invitation(
    token: str,
    req: InvitationAcceptRequest,
    session: AsyncSession,
    now: Optional[datetime] = None,
) -> tuple[Invitation, User, UserOrg]:
    """Accept a pending invitation: claim the token, then grant membership.

    Runs inside the caller's transaction, so the claim and the membership
    commit (or roll back) together.
    """
    now = now or utcnow()
    inv = await _get_by_token(token, session)
    _require_transition(inv, InvitationStatus.ACCEPTED)
    if is_due(inv, now):
        await _expire_and_raise(inv, now, session)

    await _claim(inv, InvitationStatus.ACCEPTED, now, session)

    user = await _resolve_invitee(inv, req, session)
    membership = await membership_service.ensure_member(
        user.id, inv.org_id, session, role_in_org=inv.role_in_team
    )
    await team_service.ensure_team_member(inv.team_id, user.id, inv.role_in_team, session)

    log.info(
        "invitation.accepted",
        invitation_id=str(inv.id),
        org_id=str(inv.org_id),
        user_id=str(user.id),
    )
    return inv, user, membership


async def decline_invitation(
    token: str,
    session: AsyncSession,
    now: Optional[datetime] = None,
) -> Invitation:
    now = now or utcnow()
    inv = await _get_by_token(token, session)
    _require_transition(inv, InvitationStatus.DECLINED)
    if is_due(inv, now):
        await _expire_and_raise(inv, now, session)

    await _claim(inv, InvitationStatus.DECLINED, now, session)
    log.info("invitation.declined", invitation_id=str(inv.id), org_id=str(inv.org_id))
    return inv


# ---------------------------------------------------------------------------
# Periodic sweep
# ---------------------------------------------------------------------------

async def expire_stale_invitations(
    session: AsyncSession, now: Optional[datetime] = None
) -> int:
    """Mark every pending invitation past its expiresAt as expired. Returns the count."""
    now = now or utcnow()
    result = await session.execute(
        update(Invitation)
        .where(
            Invitation.status == InvitationStatus.PENDING.value,
            Invitation.expires_at.is_not(None),
            Invitation.expires_at <= now,
        )
        .values(status=InvitationStatus.EXPIRED.value, updated_at=now)
        .execution_options(synchronize_session="fetch")
    )
    await session.flush()
    count = result.rowcount or 0
    if count:
        log.info("invitation.batch_expired", count=count)
    return count
