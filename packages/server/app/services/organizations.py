"""
Organization service — business logic for the tenant directory.
"""

from __future__ import annotations

import uuid

import structlog
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.errors import NotFoundError, ValidationError
from app.models.base import utcnow
from app.models.organization import Organization

from tenantcore_shared.schemas.organizations import (
    OrgCreateRequest,
    OrgResponse,
    OrgSettings,
    OrgUpdateRequest,
)

log = structlog.get_logger()


def _deep_merge(base: dict, patch: dict) -> dict:
    """JSON Merge Patch style deep merge."""
    result = base.copy()
    for key, value in patch.items():
        if isinstance(value, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _validated_settings(raw: dict) -> OrgSettings:
    try:
        return OrgSettings.model_validate(raw)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid organization settings: {exc.errors()[0]['msg']}")


def org_settings(org: Organization) -> OrgSettings:
    return OrgSettings.model_validate(org.settings or {})


def to_response(org: Organization) -> OrgResponse:
    return OrgResponse(
        id=org.id,
        name=org.name,
        description=org.description,
        settings=org_settings(org),
        created_at=org.created_at,
        updated_at=org.updated_at,
    )


async def create_org(req: OrgCreateRequest, session: AsyncSession) -> Organization:
    """Create an organization with validated (defaulted) settings."""
    settings = _validated_settings(req.settings or {})
    org = Organization(
        name=req.name,
        description=req.description,
        settings=settings.model_dump(),
    )
    session.add(org)
    await session.flush()

    log.info("org.created", org_id=str(org.id), name=org.name)
    return org


async def get_org(org_id: uuid.UUID, session: AsyncSession) -> Organization:
    """Get an org by id; raises NotFound if absent."""
    org = await session.get(Organization, org_id)
    if not org:
        raise NotFoundError("Organization not found", details={"org_id": str(org_id)})
    return org


async def list_orgs(session: AsyncSession) -> list[Organization]:
    result = await session.execute(select(Organization).order_by(Organization.name))
    return list(result.scalars().all())


async def update_org(
    org_id: uuid.UUID,
    req: OrgUpdateRequest,
    session: AsyncSession,
) -> Organization:
    """Update org name, description and/or settings (deep merge)."""
    org = await get_org(org_id, session)

    if req.name is not None:
        org.name = req.name
    if req.description is not None:
        org.description = req.description

    if req.settings is not None:
        merged = _deep_merge(org.settings or {}, req.settings)
        org.settings = _validated_settings(merged).model_dump()

    org.updated_at = utcnow()
    session.add(org)
    await session.flush()

    log.info("org.updated", org_id=str(org.id))
    return org


async def invitation_expiration_hours(
    org_id: uuid.UUID, session: AsyncSession
) -> int:
    """The organization's configured invitation lifetime."""
    org = await get_org(org_id, session)
    return org_settings(org).invitations.expiration_hours
