"""
Shared fixtures: in-memory SQLite (aiosqlite) behind a StaticPool, so every
session in a test sees the same database.
"""

from __future__ import annotations

import os

os.environ.setdefault("TENANTCORE_DATABASE_URL", "sqlite+aiosqlite://")

from datetime import datetime, timezone  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402
from sqlmodel import SQLModel  # noqa: E402

import app.models  # noqa: E402,F401
from app.core.database import get_session  # noqa: E402
from app.main import app  # noqa: E402

T0 = datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)


@pytest.fixture
def t0() -> datetime:
    return T0


@pytest.fixture
async def engine():
    eng = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with eng.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield eng
    await eng.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as s:
        yield s


@pytest.fixture
async def client(session_factory):
    async def _get_session():
        async with session_factory() as s:
            try:
                yield s
                await s.commit()
            except Exception:
                await s.rollback()
                raise

    app.dependency_overrides[get_session] = _get_session
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Domain fixtures (created through the services, committed)
# ---------------------------------------------------------------------------

@pytest.fixture
async def org(session):
    from app.services import organizations as org_service
    from tenantcore_shared.schemas.organizations import OrgCreateRequest

    created = await org_service.create_org(OrgCreateRequest(name="Acme Robotics"), session)
    await session.commit()
    return created


@pytest.fixture
async def team(session, org):
    from app.services import teams as team_service
    from tenantcore_shared.schemas.organizations import TeamCreateRequest

    created = await team_service.create_team(
        TeamCreateRequest(organization_id=org.id, name="Platform"), session
    )
    await session.commit()
    return created


@pytest.fixture
async def user(session):
    from app.services import users as user_service
    from tenantcore_shared.schemas.organizations import UserCreateRequest

    created = await user_service.create_user(
        UserCreateRequest(email="alice@acme.dev", first_name="Alice"), session
    )
    await session.commit()
    return created
