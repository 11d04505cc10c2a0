"""
User directory API endpoints.

POST   /api/v1/users           — Create a user
GET    /api/v1/users/{userId}  — Get a user
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_session
from app.services import users as user_service
from tenantcore_shared.schemas.organizations import UserCreateRequest, UserResponse

router = APIRouter()


@router.post("", response_model=UserResponse, status_code=201)
async def create_user(
    body: UserCreateRequest,
    session: AsyncSession = Depends(get_session),
):
    user = await user_service.create_user(body, session)
    return user_service.to_response(user)


@router.get("/{userId}", response_model=UserResponse)
async def get_user(userId: uuid.UUID, session: AsyncSession = Depends(get_session)):
    user = await user_service.get_user(userId, session)
    return user_service.to_response(user)
