"""
Tests for the feature & plan catalog: unique codes, ordered plan features,
and the guards on deleting catalog rows.
"""

from __future__ import annotations

import uuid

import pytest

from app.core.errors import ConflictError, NotFoundError
from app.services import catalog as catalog_service
from app.services import subscriptions as subscription_service
from tenantcore_shared.schemas.catalog import (
    FeatureCreateRequest,
    FeatureUpdateRequest,
    PlanCreateRequest,
    PlanUpdateRequest,
)
from tenantcore_shared.schemas.subscriptions import SubscriptionCreateRequest


async def _feature(session, code, name=None, **kwargs):
    return await catalog_service.create_feature(
        FeatureCreateRequest(name=name or code.title(), code=code, **kwargs), session
    )


class TestFeatures:
    @pytest.mark.asyncio
    async def test_create_defaults(self, session):
        feature = await _feature(session, "CHAT")
        assert feature.is_active is True
        assert feature.is_beta is False

    @pytest.mark.asyncio
    async def test_duplicate_code_conflicts(self, session):
        await _feature(session, "CHAT")
        with pytest.raises(ConflictError):
            await _feature(session, "CHAT", name="Chat v2")

    @pytest.mark.asyncio
    async def test_update_to_taken_code_conflicts(self, session):
        await _feature(session, "CHAT")
        gantt = await _feature(session, "GANTT")
        with pytest.raises(ConflictError):
            await catalog_service.update_feature(gantt.id, FeatureUpdateRequest(code="CHAT"), session)

    @pytest.mark.asyncio
    async def test_update_keeps_own_code(self, session):
        chat = await _feature(session, "CHAT")
        updated = await catalog_service.update_feature(
            chat.id, FeatureUpdateRequest(code="CHAT", name="Team chat", is_beta=True), session
        )
        assert updated.name == "Team chat"
        assert updated.is_beta is True

    @pytest.mark.asyncio
    async def test_toggle_active(self, session):
        chat = await _feature(session, "CHAT")
        assert (await catalog_service.set_feature_active(chat.id, False, session)).is_active is False
        assert (await catalog_service.set_feature_active(chat.id, True, session)).is_active is True

    @pytest.mark.asyncio
    async def test_list_ordered_by_code(self, session):
        await _feature(session, "GANTT")
        await _feature(session, "CHAT")
        assert [f.code for f in await catalog_service.list_features(session)] == ["CHAT", "GANTT"]

    @pytest.mark.asyncio
    async def test_delete_detaches_from_plans(self, session):
        chat = await _feature(session, "CHAT")
        gantt = await _feature(session, "GANTT")
        plan = await catalog_service.create_plan(
            PlanCreateRequest(name="Pro", feature_ids=[chat.id, gantt.id]), session
        )

        await catalog_service.delete_feature(chat.id, session)

        response = await catalog_service.plan_response(plan, session)
        assert response.feature_ids == [gantt.id]
        with pytest.raises(NotFoundError):
            await catalog_service.get_feature(chat.id, session)


class TestPlans:
    @pytest.mark.asyncio
    async def test_round_trip_feature_ids(self, session):
        a = await _feature(session, "A")
        b = await _feature(session, "B")
        plan = await catalog_service.create_plan(
            PlanCreateRequest(name="Pro", monthly_price=20, seat_limit=5, feature_ids=[b.id, a.id]),
            session,
        )

        fetched = await catalog_service.get_plan(plan.id, session)
        response = await catalog_service.plan_response(fetched, session)
        assert response.feature_ids == [b.id, a.id]
        assert [f.code for f in response.features] == ["B", "A"]
        assert response.seat_limit == 5
        assert response.monthly_price == 20

    @pytest.mark.asyncio
    async def test_duplicate_ids_collapse(self, session):
        a = await _feature(session, "A")
        plan = await catalog_service.create_plan(
            PlanCreateRequest(name="Pro", feature_ids=[a.id, a.id]), session
        )
        assert (await catalog_service.plan_response(plan, session)).feature_ids == [a.id]

    @pytest.mark.asyncio
    async def test_unknown_feature_id(self, session):
        with pytest.raises(NotFoundError):
            await catalog_service.create_plan(
                PlanCreateRequest(name="Pro", feature_ids=[uuid.uuid4()]), session
            )

    @pytest.mark.asyncio
    async def test_update_replaces_features(self, session):
        a = await _feature(session, "A")
        b = await _feature(session, "B")
        plan = await catalog_service.create_plan(PlanCreateRequest(name="Pro", feature_ids=[a.id]), session)

        await catalog_service.update_plan(
            plan.id,
            PlanUpdateRequest(feature_ids=[b.id], usage_limits={"api_calls": 100}, seat_limit=None),
            session,
        )

        response = await catalog_service.plan_response(plan, session)
        assert response.feature_ids == [b.id]
        assert response.usage_limits == {"api_calls": 100}
        assert response.seat_limit is None

    @pytest.mark.asyncio
    async def test_update_without_feature_ids_keeps_them(self, session):
        a = await _feature(session, "A")
        plan = await catalog_service.create_plan(PlanCreateRequest(name="Pro", feature_ids=[a.id]), session)
        await catalog_service.update_plan(plan.id, PlanUpdateRequest(name="Pro+"), session)
        response = await catalog_service.plan_response(plan, session)
        assert response.name == "Pro+"
        assert response.feature_ids == [a.id]

    @pytest.mark.asyncio
    async def test_delete_unreferenced(self, session):
        plan = await catalog_service.create_plan(PlanCreateRequest(name="Pro"), session)
        await catalog_service.delete_plan(plan.id, session)
        with pytest.raises(NotFoundError):
            await catalog_service.get_plan(plan.id, session)

    @pytest.mark.asyncio
    async def test_delete_referenced_conflicts(self, session, org, t0):
        plan = await catalog_service.create_plan(PlanCreateRequest(name="Pro"), session)
        await subscription_service.create_or_update_subscription(
            SubscriptionCreateRequest(organization_id=org.id, plan_id=plan.id), session, now=t0
        )
        await subscription_service.cancel_subscription(org.id, session, now=t0)

        # Even a canceled (historical) subscription pins the plan
        with pytest.raises(ConflictError):
            await catalog_service.delete_plan(plan.id, session)

    @pytest.mark.asyncio
    async def test_deactivate(self, session):
        plan = await catalog_service.create_plan(PlanCreateRequest(name="Pro"), session)
        assert (await catalog_service.set_plan_active(plan.id, False, session)).is_active is False
