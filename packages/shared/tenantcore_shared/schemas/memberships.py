"""User-Organization membership schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import Field

from .common import DEFAULT_ROLE, ApiModel
from .organizations import OrgRef, UserRef


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class MembershipAddRequest(ApiModel):
    user_id: uuid.UUID
    organization_id: uuid.UUID
    role_in_org: Optional[str] = Field(default=None, min_length=1, max_length=50)


class MembershipRemoveRequest(ApiModel):
    user_id: uuid.UUID
    organization_id: uuid.UUID


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class MembershipResponse(ApiModel):
    """Narrow membership: references only."""
    user_id: uuid.UUID
    organization_id: uuid.UUID
    role_in_org: str = DEFAULT_ROLE
    created_at: datetime


class MembershipWithOrg(MembershipResponse):
    """Membership joined with its organization (per-user listing)."""
    organization: OrgRef


class MembershipWithUser(MembershipResponse):
    """Membership joined with its user (per-org listing)."""
    user: UserRef


class MembershipRemoveResponse(ApiModel):
    success: bool = True
