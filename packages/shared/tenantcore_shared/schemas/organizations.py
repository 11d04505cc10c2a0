"""
Organization (tenant) schemas shared between the server and its callers.

Covers: org CRUD request/response, OrgSettings and its sub-models,
users and teams that live inside the tenant directory.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from .common import ApiModel


# ---------------------------------------------------------------------------
# Org Settings sub-models
# ---------------------------------------------------------------------------

class InvitationSettings(BaseModel):
    expiration_hours: int = Field(
        default=48,
        ge=1,
        le=8760,
        description="Hours an invitation stays acceptable after it is issued",
    )


class OrgSettings(BaseModel):
    """Complete org-level settings schema. All fields optional with defaults."""

    invitations: InvitationSettings = Field(default_factory=InvitationSettings)


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------

class OrgCreateRequest(ApiModel):
    name: str = Field(..., min_length=1, max_length=100, description="Organization display name")
    description: Optional[str] = Field(None, max_length=1000)
    settings: Optional[dict] = Field(
        None,
        description="Initial settings, validated against OrgSettings",
    )


class OrgUpdateRequest(ApiModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)
    settings: Optional[dict] = Field(
        None,
        description="Partial settings update (deep-merged via JSON Merge Patch)",
    )


class UserCreateRequest(ApiModel):
    email: EmailStr
    first_name: Optional[str] = Field(None, max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    password: Optional[str] = Field(None, min_length=8, max_length=128)


class TeamCreateRequest(ApiModel):
    organization_id: uuid.UUID
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(None, max_length=1000)


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------

class OrgResponse(ApiModel):
    id: uuid.UUID
    name: str
    description: Optional[str] = None
    settings: OrgSettings
    created_at: datetime
    updated_at: datetime


class OrgRef(ApiModel):
    """Narrow projection of an organization used inside expanded reads."""
    id: uuid.UUID
    name: str


class UserResponse(ApiModel):
    id: uuid.UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    created_at: datetime


class UserRef(ApiModel):
    id: uuid.UUID
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class TeamResponse(ApiModel):
    id: uuid.UUID
    organization_id: uuid.UUID
    name: str
    description: Optional[str] = None
    created_at: datetime
