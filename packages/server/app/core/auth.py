"""
Credential and token helpers.

Supports:
- Password hashing for users created through invitation acceptance
- Single-use invitation tokens
- Feature gating dependency for routes that act on behalf of a tenant

Authentication itself (sessions, API keys) lives in front of this service;
401/403 decisions made there pass through untouched.
"""

from __future__ import annotations

import secrets
import uuid

import bcrypt
import structlog
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.core.errors import ForbiddenError, ValidationError
from app.services import entitlements as entitlement_service

log = structlog.get_logger()

INVITATION_TOKEN_BYTES = 32

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------

def hash_password(password: str) -> str:
    """Hash a password using bcrypt with cost factor 12."""
    return bcrypt.hashpw(password.encode(), bcrypt.gensalt(rounds=12)).decode()


def verify_password(password: str, hashed: str) -> bool:
    """Verify a password against a bcrypt hash."""
    return bcrypt.checkpw(password.encode(), hashed.encode())


# ---------------------------------------------------------------------------
# Invitation tokens
# ---------------------------------------------------------------------------

def generate_invitation_token() -> str:
    """URL-safe random token; uniqueness is enforced by the invitations table."""
    return secrets.token_urlsafe(INVITATION_TOKEN_BYTES)


# ---------------------------------------------------------------------------
# Feature gating
# ---------------------------------------------------------------------------

def require_feature(feature_code: str):
    """Dependency factory: reject the request unless the tenant has ``feature_code``.

    The tenant is read from an ``orgId`` path or query parameter.
    """

    async def _dependency(
        request: Request,
        session: AsyncSession = Depends(get_session),
    ) -> uuid.UUID:
        raw = request.path_params.get("orgId") or request.query_params.get("orgId")
        if not raw:
            raise ValidationError("orgId is required for feature-gated routes")
        try:
            org_id = uuid.UUID(raw)
        except ValueError:
            raise ValidationError(f"orgId '{raw}' is not a valid id")

        if not await entitlement_service.has_feature(org_id, feature_code, session):
            log.info("entitlement.denied", org_id=str(org_id), feature=feature_code)
            raise ForbiddenError(
                f"Organization does not have feature '{feature_code}'",
                details={"org_id": str(org_id), "feature": feature_code},
            )
        return org_id

    return _dependency
