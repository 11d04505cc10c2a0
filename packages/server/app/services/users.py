"""
User directory service — creating and looking up users.
"""

from __future__ import annotations

import uuid
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.core.auth import hash_password
from app.core.errors import ConflictError, NotFoundError, ValidationError
from app.models.user import User
from tenantcore_shared.schemas.organizations import UserCreateRequest, UserRef, UserResponse

log = structlog.get_logger()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
        created_at=user.created_at,
    )


def to_ref(user: User) -> UserRef:
    return UserRef(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
    )


async def find_by_email(email: str, session: AsyncSession) -> Optional[User]:
    result = await session.execute(
        select(User).where(User.email == normalize_email(email))
    )
    return result.scalar_one_or_none()


async def create_user(req: UserCreateRequest, session: AsyncSession) -> User:
    """Create a user; the email must not be taken."""
    if not req.email:
        raise ValidationError("Email is required")
    if await find_by_email(req.email, session):
        raise ConflictError("A user with this email already exists")

    user = User(
        email=normalize_email(req.email),
        first_name=req.first_name,
        last_name=req.last_name,
        password_hash=hash_password(req.password) if req.password else None,
    )
    session.add(user)
    await session.flush()

    log.info("user.created", user_id=str(user.id))
    return user


async def get_user(user_id: uuid.UUID, session: AsyncSession) -> User:
    user = await session.get(User, user_id)
    if not user:
        raise NotFoundError("User not found", details={"user_id": str(user_id)})
    return user
