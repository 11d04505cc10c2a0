"""
Invitation schemas and lifecycle.

An invitation is a time-bounded, single-use offer to join a team (and
through it, the team's organization). Only ``pending`` has outgoing
transitions; every other state is terminal.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import EmailStr, Field

from .common import ApiModel
from .memberships import MembershipResponse
from .organizations import UserResponse


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class InvitationStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    EXPIRED = "expired"
    DECLINED = "declined"
    CANCELLED = "cancelled"


# ---------------------------------------------------------------------------
# Lifecycle transitions
# ---------------------------------------------------------------------------

INVITATION_TRANSITIONS: dict[InvitationStatus, list[InvitationStatus]] = {
    InvitationStatus.PENDING: [
        InvitationStatus.ACCEPTED,
        InvitationStatus.DECLINED,
        InvitationStatus.CANCELLED,
        InvitationStatus.EXPIRED,
    ],
    InvitationStatus.ACCEPTED: [],
    InvitationStatus.EXPIRED: [],
    InvitationStatus.DECLINED: [],
    InvitationStatus.CANCELLED: [],
}


def is_terminal(status: InvitationStatus) -> bool:
    return not INVITATION_TRANSITIONS[status]


def validate_transition(
    current: InvitationStatus, target: InvitationStatus
) -> tuple[bool, str]:
    """Check a lifecycle move. Returns (valid, message)."""
    if current == target:
        return False, f"Invitation is already '{current.value}'"
    if target not in INVITATION_TRANSITIONS[current]:
        return False, (
            f"Cannot move invitation from '{current.value}' to '{target.value}'"
        )
    return True, "ok"


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class InvitationCreateRequest(ApiModel):
    email: EmailStr
    team_id: uuid.UUID
    role_in_team: Optional[str] = Field(default=None, min_length=1, max_length=50)
    expires_in_hours: Optional[int] = Field(
        default=None,
        ge=1,
        le=8760,
        description="Overrides the organization's invitation expiration setting",
    )


class InvitationUpdateRequest(ApiModel):
    """Editable fields of a pending invitation. Status moves use the lifecycle routes."""
    email: Optional[EmailStr] = None
    role_in_team: Optional[str] = Field(default=None, min_length=1, max_length=50)
    expires_at: Optional[datetime] = None


class InvitationAcceptRequest(ApiModel):
    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    password: Optional[str] = Field(default=None, min_length=8, max_length=128)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class InvitationResponse(ApiModel):
    id: uuid.UUID
    email: str
    team_id: uuid.UUID
    organization_id: uuid.UUID
    role_in_team: Optional[str] = None
    invitation_token: str
    status: InvitationStatus
    expires_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class InvitationAcceptResponse(ApiModel):
    message: str
    invitation: InvitationResponse
    user: UserResponse
    membership: MembershipResponse
