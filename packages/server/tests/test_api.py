"""
HTTP contract tests: camelCase bodies, status codes and the error envelope,
exercised end-to-end through the FastAPI app.
"""

from __future__ import annotations

import uuid

import pytest

API = "/api/v1"


async def _create(client, path, body):
    resp = await client.post(f"{API}{path}", json=body)
    assert resp.status_code == 201, resp.text
    return resp.json()


@pytest.fixture
async def org_id(client):
    return (await _create(client, "/organizations", {"name": "Acme"}))["id"]


@pytest.fixture
async def team_id(client, org_id):
    return (await _create(client, "/teams", {"organizationId": org_id, "name": "Core"}))["id"]


class TestErrorEnvelope:
    @pytest.mark.asyncio
    async def test_not_found(self, client):
        resp = await client.get(f"{API}/organizations/{uuid.uuid4()}")
        assert resp.status_code == 404
        assert resp.json() == {
            "error": {"code": "NOT_FOUND", "message": "Organization not found", "status": 404}
        }

    @pytest.mark.asyncio
    async def test_request_validation(self, client):
        resp = await client.post(f"{API}/organizations", json={"name": ""})
        assert resp.status_code == 422
        error = resp.json()["error"]
        assert error["code"] == "VALIDATION_ERROR"
        assert error["status"] == 422

    @pytest.mark.asyncio
    async def test_malformed_id(self, client):
        resp = await client.get(f"{API}/users/not-a-uuid")
        assert resp.status_code == 422


class TestDirectoryRoutes:
    @pytest.mark.asyncio
    async def test_org_crud(self, client, org_id):
        resp = await client.get(f"{API}/organizations/{org_id}")
        body = resp.json()
        assert body["name"] == "Acme"
        assert body["settings"]["invitations"]["expiration_hours"] == 48
        assert "createdAt" in body

        resp = await client.patch(
            f"{API}/organizations/{org_id}",
            json={"settings": {"invitations": {"expiration_hours": 24}}},
        )
        assert resp.status_code == 200
        assert resp.json()["settings"]["invitations"]["expiration_hours"] == 24

        listed = (await client.get(f"{API}/organizations")).json()
        assert [o["id"] for o in listed] == [org_id]

    @pytest.mark.asyncio
    async def test_users(self, client):
        user = await _create(
            client, "/users", {"email": "Dana@Acme.dev", "firstName": "Dana", "password": "longenough"}
        )
        assert user["email"] == "dana@acme.dev"
        assert user["firstName"] == "Dana"
        assert "password" not in user and "passwordHash" not in user

        dup = await client.post(f"{API}/users", json={"email": "dana@acme.dev"})
        assert dup.status_code == 409
        assert dup.json()["error"]["code"] == "CONFLICT"

    @pytest.mark.asyncio
    async def test_teams(self, client, org_id, team_id):
        team = (await client.get(f"{API}/teams/{team_id}")).json()
        assert team["organizationId"] == org_id

        listed = (await client.get(f"{API}/teams", params={"orgId": org_id})).json()
        assert [t["id"] for t in listed] == [team_id]

    @pytest.mark.asyncio
    async def test_memberships(self, client, org_id):
        user_id = (await _create(client, "/users", {"email": "erin@acme.dev"}))["id"]
        body = {"userId": user_id, "organizationId": org_id, "roleInOrg": "admin"}

        added = await _create(client, "/user-organizations/add", body)
        assert added["roleInOrg"] == "admin"
        assert added["organizationId"] == org_id

        again = await client.post(f"{API}/user-organizations/add", json=body)
        assert again.status_code == 409

        orgs = (await client.get(f"{API}/user-organizations/user/{user_id}")).json()
        assert orgs[0]["organization"]["name"] == "Acme"
        users = (await client.get(f"{API}/user-organizations/org/{org_id}")).json()
        assert users[0]["user"]["email"] == "erin@acme.dev"

        remove = {"userId": user_id, "organizationId": org_id}
        for _ in range(2):
            resp = await client.post(f"{API}/user-organizations/remove", json=remove)
            assert resp.status_code == 200
            assert resp.json() == {"success": True}


class TestInvitationRoutes:
    @pytest.mark.asyncio
    async def test_accept_flow(self, client, org_id, team_id):
        inv = await _create(
            client, "/invitations", {"email": "finn@acme.dev", "teamId": team_id, "roleInTeam": "dev"}
        )
        assert inv["status"] == "pending"
        assert inv["organizationId"] == org_id
        assert inv["expiresAt"] is not None
        token = inv["invitationToken"]

        resp = await client.post(f"{API}/invitations/accept/{token}", json={"firstName": "Finn"})
        assert resp.status_code == 200, resp.text
        body = resp.json()
        assert body["invitation"]["status"] == "accepted"
        assert body["user"]["firstName"] == "Finn"
        assert body["membership"]["roleInOrg"] == "dev"

        again = await client.post(f"{API}/invitations/accept/{token}")
        assert again.status_code == 409
        assert again.json()["error"]["code"] == "INVALID_STATE"

    @pytest.mark.asyncio
    async def test_accept_without_body(self, client, team_id):
        inv = await _create(client, "/invitations", {"email": "gil@acme.dev", "teamId": team_id})
        resp = await client.post(f"{API}/invitations/accept/{inv['invitationToken']}")
        assert resp.status_code == 200
        assert resp.json()["membership"]["roleInOrg"] == "member"

    @pytest.mark.asyncio
    async def test_expired_accept_persists_status(self, client, team_id):
        inv = await _create(client, "/invitations", {"email": "hal@acme.dev", "teamId": team_id})
        resp = await client.patch(
            f"{API}/invitations/{inv['id']}", json={"expiresAt": "2000-01-01T00:00:00Z"}
        )
        assert resp.status_code == 200

        resp = await client.post(f"{API}/invitations/accept/{inv['invitationToken']}")
        assert resp.status_code == 410
        assert resp.json()["error"]["code"] == "EXPIRED"

        listed = (await client.get(f"{API}/invitations", params={"teamId": team_id})).json()
        assert [i["status"] for i in listed] == ["expired"]

    @pytest.mark.asyncio
    async def test_decline_cancel_resend_delete(self, client, team_id):
        a = await _create(client, "/invitations", {"email": "a@acme.dev", "teamId": team_id})
        b = await _create(client, "/invitations", {"email": "b@acme.dev", "teamId": team_id})

        declined = await client.post(f"{API}/invitations/decline/{a['invitationToken']}")
        assert declined.json()["status"] == "declined"

        resent = await client.post(f"{API}/invitations/resend/{b['id']}")
        assert resent.status_code == 200
        assert resent.json()["invitationToken"] != b["invitationToken"]

        cancelled = await client.post(f"{API}/invitations/cancel/{b['id']}")
        assert cancelled.json()["status"] == "cancelled"

        resp = await client.post(f"{API}/invitations/resend/{b['id']}")
        assert resp.status_code == 409

        resp = await client.delete(f"{API}/invitations/{a['id']}")
        assert resp.json() == {"message": "Invitation deleted"}
        assert (await client.get(f"{API}/invitations/{a['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_expiry_override(self, client, team_id):
        inv = await _create(
            client, "/invitations", {"email": "i@acme.dev", "teamId": team_id, "expiresInHours": 1}
        )
        assert inv["expiresAt"] is not None

    @pytest.mark.asyncio
    async def test_unknown_token(self, client):
        resp = await client.post(f"{API}/invitations/decline/nope")
        assert resp.status_code == 404


class TestCatalogAndSubscriptionRoutes:
    @pytest.mark.asyncio
    async def test_subscription_lifecycle(self, client, org_id):
        chat = await _create(client, "/features", {"name": "Chat", "code": "CHAT"})
        assert chat["isActive"] is True

        dup = await client.post(f"{API}/features", json={"name": "Chat", "code": "CHAT"})
        assert dup.status_code == 409

        basic = await _create(
            client, "/plans", {"name": "Basic", "monthlyPrice": 10, "featureIds": [chat["id"]]}
        )
        assert basic["featureIds"] == [chat["id"]]
        assert basic["features"][0]["code"] == "CHAT"
        pro = await _create(client, "/plans", {"name": "Pro", "monthlyPrice": 30})

        resp = await client.get(f"{API}/org-subs/active/{org_id}")
        assert resp.status_code == 404

        sub = await _create(client, "/org-subs", {"organizationId": org_id, "planId": basic["id"]})
        assert sub["status"] == "active"
        assert sub["endDate"] is None

        has = await client.get(
            f"{API}/org-subs/has-feature", params={"orgId": org_id, "featureCode": "CHAT"}
        )
        assert has.json() == {"hasFeature": True}
        codes = (await client.get(f"{API}/org-subs/features/{org_id}")).json()
        assert codes == {"organizationId": org_id, "featureCodes": ["CHAT"]}

        await _create(client, "/org-subs", {"organizationId": org_id, "planId": pro["id"]})
        active = (await client.get(f"{API}/org-subs/active/{org_id}")).json()
        assert active["plan"]["name"] == "Pro"

        history = (await client.get(f"{API}/org-subs/list/{org_id}")).json()
        assert [h["status"] for h in history] == ["active", "canceled"]

        has = await client.get(
            f"{API}/org-subs/has-feature", params={"orgId": org_id, "featureCode": "CHAT"}
        )
        assert has.json() == {"hasFeature": False}

        resp = await client.delete(f"{API}/plans/{basic['id']}")
        assert resp.status_code == 409

        resp = await client.post(f"{API}/org-subs/cancel", json={"orgId": org_id})
        assert resp.json()["status"] == "canceled"
        resp = await client.post(f"{API}/org-subs/cancel", json={"orgId": org_id})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_usage(self, client, org_id):
        plan = await _create(client, "/plans", {"name": "Metered", "usageLimits": {"exports": 2}})
        await _create(client, "/org-subs", {"organizationId": org_id, "planId": plan["id"]})

        resp = await client.post(f"{API}/org-subs/usage", json={"orgId": org_id, "key": "exports", "amount": 2})
        assert resp.json()["usage"] == {"exports": 2}

        resp = await client.post(f"{API}/org-subs/usage", json={"orgId": org_id, "key": "exports"})
        assert resp.status_code == 409

    @pytest.mark.asyncio
    async def test_status_must_be_current(self, client, org_id):
        plan = await _create(client, "/plans", {"name": "Basic"})
        resp = await client.post(
            f"{API}/org-subs", json={"organizationId": org_id, "planId": plan["id"], "status": "canceled"}
        )
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_unknown_feature_in_plan(self, client):
        resp = await client.post(f"{API}/plans", json={"name": "Bad", "featureIds": [str(uuid.uuid4())]})
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_feature_toggle_and_delete(self, client):
        feature = await _create(client, "/features", {"name": "Gantt", "code": "GANTT"})
        resp = await client.post(f"{API}/features/{feature['id']}/deactivate")
        assert resp.json()["isActive"] is False
        resp = await client.patch(f"{API}/features/{feature['id']}", json={"isBeta": True})
        assert resp.json()["isBeta"] is True
        resp = await client.delete(f"{API}/features/{feature['id']}")
        assert resp.json() == {"message": "Feature deleted"}
