"""Tests for the local bootstrap script."""

from __future__ import annotations

import pytest

from app.core.auth import verify_password
from app.scripts.bootstrap_org import bootstrap
from app.services import memberships as membership_service


class TestBootstrap:
    @pytest.mark.asyncio
    async def test_creates_org_and_owner(self, session):
        org, user = await bootstrap("Acme", "owner@acme.dev", "s3cretpass", session)

        membership = await membership_service.get_membership(user.id, org.id, session)
        assert membership.role == "owner"
        assert verify_password("s3cretpass", user.password_hash)

    @pytest.mark.asyncio
    async def test_reuses_existing_user(self, session, user):
        org, owner = await bootstrap("Second", "ALICE@acme.dev", None, session)
        assert owner.id == user.id
        assert (await membership_service.get_membership(user.id, org.id, session)).role == "owner"
