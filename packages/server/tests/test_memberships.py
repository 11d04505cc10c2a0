"""
Tests for the membership registry: one membership per (user, org) pair,
idempotent removal, and the two listing directions.
"""

from __future__ import annotations

import uuid

import pytest

from app.core.errors import ConflictError, NotFoundError
from app.models.user_org import UserOrg
from app.services import memberships as membership_service
from app.services import organizations as org_service
from tenantcore_shared.schemas.organizations import OrgCreateRequest


class TestAddMember:
    @pytest.mark.asyncio
    async def test_default_role(self, session, org, user):
        membership = await membership_service.add_member(user.id, org.id, session)
        assert membership.role == "member"

    @pytest.mark.asyncio
    async def test_explicit_role(self, session, org, user):
        membership = await membership_service.add_member(
            user.id, org.id, session, role_in_org="admin"
        )
        assert membership_service.to_response(membership).role_in_org == "admin"

    @pytest.mark.asyncio
    async def test_second_add_conflicts(self, session, org, user):
        await membership_service.add_member(user.id, org.id, session)
        with pytest.raises(ConflictError):
            await membership_service.add_member(user.id, org.id, session, role_in_org="owner")

        # The original membership is unchanged
        existing = await membership_service.get_membership(user.id, org.id, session)
        assert existing.role == "member"

    @pytest.mark.asyncio
    async def test_unknown_user(self, session, org):
        with pytest.raises(NotFoundError):
            await membership_service.add_member(uuid.uuid4(), org.id, session)

    @pytest.mark.asyncio
    async def test_unknown_org(self, session, user):
        with pytest.raises(NotFoundError):
            await membership_service.add_member(user.id, uuid.uuid4(), session)

    @pytest.mark.asyncio
    async def test_ensure_member_keeps_existing_role(self, session, org, user):
        await membership_service.add_member(user.id, org.id, session, role_in_org="admin")
        membership = await membership_service.ensure_member(
            user.id, org.id, session, role_in_org="member"
        )
        assert membership.role == "admin"


class TestRemoveMember:
    @pytest.mark.asyncio
    async def test_remove_twice_is_idempotent(self, session, org, user):
        await membership_service.add_member(user.id, org.id, session)

        assert await membership_service.remove_member(user.id, org.id, session) is True
        assert await membership_service.remove_member(user.id, org.id, session) is False
        assert await membership_service.get_membership(user.id, org.id, session) is None

    @pytest.mark.asyncio
    async def test_readd_after_remove(self, session, org, user):
        await membership_service.add_member(user.id, org.id, session)
        await membership_service.remove_member(user.id, org.id, session)
        membership = await membership_service.add_member(user.id, org.id, session)
        assert membership.user_id == user.id


class TestListings:
    @pytest.mark.asyncio
    async def test_orgs_for_user(self, session, org, user):
        second = await org_service.create_org(OrgCreateRequest(name="Beta Corp"), session)
        await membership_service.add_member(user.id, org.id, session, role_in_org="owner")
        await membership_service.add_member(user.id, second.id, session)

        rows = await membership_service.list_orgs_for_user(user.id, session)
        assert [r.organization.name for r in rows] == ["Acme Robotics", "Beta Corp"]
        assert rows[0].role_in_org == "owner"
        assert rows[1].organization_id == second.id

    @pytest.mark.asyncio
    async def test_users_in_org(self, session, org, user):
        await membership_service.add_member(user.id, org.id, session)

        rows = await membership_service.list_users_in_org(org.id, session)
        assert len(rows) == 1
        assert rows[0].user.email == "alice@acme.dev"
        assert rows[0].user_id == user.id

    @pytest.mark.asyncio
    async def test_empty_listings(self, session, org, user):
        assert await membership_service.list_orgs_for_user(user.id, session) == []
        assert await membership_service.list_users_in_org(org.id, session) == []


class TestConcurrentEnsure:
    @pytest.mark.asyncio
    async def test_reuses_membership_added_meanwhile(
        self, monkeypatch, session, session_factory, org, user
    ):
        lookup = membership_service.get_membership
        raced = []

        async def _lookup_then_lose_race(user_id, org_id, s):
            found = await lookup(user_id, org_id, s)
            if not raced:
                raced.append(True)
                async with session_factory() as other:
                    other.add(UserOrg(user_id=user_id, org_id=org_id, role="admin"))
                    await other.commit()
            return found

        monkeypatch.setattr(membership_service, "get_membership", _lookup_then_lose_race)

        membership = await membership_service.ensure_member(
            user.id, org.id, session, role_in_org="member"
        )
        await session.commit()

        assert membership.role == "admin"
        assert len(await membership_service.list_users_in_org(org.id, session)) == 1
