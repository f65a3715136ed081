"""
HTTP tests: routes, gates, the error envelope and the end-to-end
create / invite / redeem flow.
"""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from csdash import main as main_module
from csdash.core.auth import create_session_token
from csdash.core.errors import StoreUnavailable
from csdash.models.base import utcnow
from csdash.services.store import MembershipStore

from .factories import auth_headers, make_caller


async def _create_org(client, owner, name="Acme Dental, LLC") -> dict:
    resp = await client.post("/api/v1/orgs", json={"name": name}, headers=auth_headers(owner))
    assert resp.status_code == 201, resp.text
    return resp.json()


async def _invite(client, inviter, org_id, email) -> str:
    resp = await client.post(
        f"/api/v1/orgs/{org_id}/invitations", json={"email": email}, headers=auth_headers(inviter)
    )
    assert resp.status_code == 201, resp.text
    return resp.json()["token"]


def _error(resp) -> dict:
    return resp.json()["error"]


class TestAuthentication:
    async def test_missing_credentials(self, client):
        resp = await client.get("/api/v1/orgs")
        assert resp.status_code == 401
        assert _error(resp) == {
            "code": "UNAUTHENTICATED",
            "message": "Authentication required",
            "status": 401,
        }

    async def test_bad_token(self, client):
        resp = await client.get("/api/v1/orgs", headers={"Authorization": "Bearer nope"})
        assert resp.status_code == 401

    async def test_session_cookie(self, client):
        owner = make_caller("owner@acme.com")
        await _create_org(client, owner)
        client.cookies.set("csd_session", create_session_token(owner.user_id, owner.email))

        resp = await client.get("/api/v1/orgs")
        assert resp.status_code == 200
        assert [o["slug"] for o in resp.json()["data"]] == ["acme-dental-llc"]


class TestOrganizations:
    async def test_create_and_get(self, client):
        owner = make_caller("owner@acme.com")
        org = await _create_org(client, owner)
        assert (org["slug"], org["role"]) == ("acme-dental-llc", "owner")

        resp = await client.get(f"/api/v1/orgs/{org['id']}", headers=auth_headers(owner))
        assert resp.status_code == 200
        assert resp.json()["role"] == "owner"

    async def test_duplicate_name_conflicts(self, client):
        await _create_org(client, make_caller())
        resp = await client.post(
            "/api/v1/orgs", json={"name": "acme dental llc"}, headers=auth_headers(make_caller())
        )
        assert resp.status_code == 409

    async def test_blank_name_rejected(self, client):
        resp = await client.post("/api/v1/orgs", json={"name": "   "}, headers=auth_headers(make_caller()))
        assert resp.status_code == 422

    async def test_stranger_gets_not_a_member(self, client):
        org = await _create_org(client, make_caller())
        resp = await client.get(f"/api/v1/orgs/{org['id']}", headers=auth_headers(make_caller()))
        assert resp.status_code == 403
        assert _error(resp)["code"] == "NOT_A_MEMBER"

    async def test_unknown_org_looks_like_non_membership(self, client):
        resp = await client.get(f"/api/v1/orgs/{uuid.uuid4()}", headers=auth_headers(make_caller()))
        assert resp.status_code == 403
        assert _error(resp)["code"] == "NOT_A_MEMBER"

    async def test_hidden_tenant_existence(self, client, monkeypatch):
        monkeypatch.setattr(main_module.settings, "hide_tenant_existence", True)
        org = await _create_org(client, make_caller())

        resp = await client.get(f"/api/v1/orgs/{org['id']}", headers=auth_headers(make_caller()))
        assert resp.status_code == 404
        assert _error(resp)["code"] == "RESOURCE_NOT_FOUND"

    async def test_store_outage_is_503(self, client, monkeypatch):
        owner = make_caller()
        org = await _create_org(client, owner)
        monkeypatch.setattr(
            MembershipStore, "get_membership", AsyncMock(side_effect=StoreUnavailable())
        )

        resp = await client.get(f"/api/v1/orgs/{org['id']}", headers=auth_headers(owner))
        assert resp.status_code == 503
        assert _error(resp)["code"] == "STORE_UNAVAILABLE"


class TestMembersAndDsos:
    async def test_member_management_flow(self, client):
        owner = make_caller()
        org = await _create_org(client, owner)
        user_id = str(uuid.uuid4())
        base = f"/api/v1/orgs/{org['id']}/members"

        resp = await client.post(base, json={"user_id": user_id}, headers=auth_headers(owner))
        assert resp.status_code == 201
        assert resp.json()["role"] == "member"

        resp = await client.patch(f"{base}/{user_id}", json={"role": "admin"}, headers=auth_headers(owner))
        assert resp.json()["role"] == "admin"

        resp = await client.get(base, headers=auth_headers(owner))
        assert {m["user_id"] for m in resp.json()["data"]} == {str(owner.user_id), user_id}

        resp = await client.delete(f"{base}/{user_id}", headers=auth_headers(owner))
        assert resp.status_code == 204

    async def test_dso_gates(self, client):
        owner, stranger = make_caller(), make_caller()
        org = await _create_org(client, owner)
        resp = await client.post(
            f"/api/v1/orgs/{org['id']}/dsos", json={"name": "Bright Smiles Group"}, headers=auth_headers(owner)
        )
        assert resp.status_code == 201
        dso = resp.json()

        resp = await client.get(f"/api/v1/dsos/{dso['id']}", headers=auth_headers(owner))
        assert resp.status_code == 200
        assert resp.json()["role"] == "owner"

        resp = await client.get(f"/api/v1/dsos/{dso['id']}", headers=auth_headers(stranger))
        assert _error(resp)["code"] == "NOT_A_MEMBER"

        resp = await client.get(f"/api/v1/dsos/{uuid.uuid4()}", headers=auth_headers(owner))
        assert resp.status_code == 404
        assert _error(resp)["code"] == "RESOURCE_NOT_FOUND"

        resp = await client.get(f"/api/v1/orgs/{org['id']}/dsos", headers=auth_headers(owner))
        assert [d["name"] for d in resp.json()["data"]] == ["Bright Smiles Group"]


class TestInvitationFlow:
    async def test_create_invite_redeem_then_denied_elevated(self, client):
        u1 = make_caller("owner@acme.com")
        u2 = make_caller("u2@acme.com")
        org = await _create_org(client, u1)
        token = await _invite(client, u1, org["id"], u2.email)

        first = await client.post("/api/v1/invitations/redeem", json={"token": token}, headers=auth_headers(u2))
        assert first.status_code == 200
        assert first.json()["role"] == "member"

        second = await client.post("/api/v1/invitations/redeem", json={"token": token}, headers=auth_headers(u2))
        assert second.status_code == 200
        assert second.json() == first.json()

        resp = await client.get(f"/api/v1/orgs/{org['id']}/members", headers=auth_headers(u1))
        assert [m["user_id"] for m in resp.json()["data"]].count(str(u2.user_id)) == 1

        resp = await client.patch(f"/api/v1/orgs/{org['id']}", json={"name": "Renamed"}, headers=auth_headers(u2))
        assert resp.status_code == 403
        assert _error(resp)["code"] == "INSUFFICIENT_ROLE"

    async def test_member_cannot_issue_invitations(self, client):
        owner, member = make_caller("owner@acme.com"), make_caller("m@acme.com")
        org = await _create_org(client, owner)
        token = await _invite(client, owner, org["id"], member.email)
        await client.post("/api/v1/invitations/redeem", json={"token": token}, headers=auth_headers(member))

        resp = await client.post(
            f"/api/v1/orgs/{org['id']}/invitations", json={"email": "x@acme.com"}, headers=auth_headers(member)
        )
        assert resp.status_code == 403
        assert _error(resp)["code"] == "INSUFFICIENT_ROLE"

    async def test_email_mismatch(self, client):
        owner = make_caller("owner@acme.com")
        org = await _create_org(client, owner)
        token = await _invite(client, owner, org["id"], "u2@acme.com")

        resp = await client.post(
            "/api/v1/invitations/redeem", json={"token": token}, headers=auth_headers(make_caller("u3@acme.com"))
        )
        assert resp.status_code == 400
        assert _error(resp)["code"] == "EMAIL_MISMATCH"

    async def test_expired_token(self, client, monkeypatch):
        owner, u2 = make_caller("owner@acme.com"), make_caller("u2@acme.com")
        org = await _create_org(client, owner)
        monkeypatch.setattr(main_module.settings, "invitation_ttl_days", 0)
        token = await _invite(client, owner, org["id"], u2.email)

        resp = await client.post("/api/v1/invitations/redeem", json={"token": token}, headers=auth_headers(u2))
        assert resp.status_code == 410
        assert _error(resp)["code"] == "TOKEN_EXPIRED"

    async def test_unknown_token(self, client):
        resp = await client.post(
            "/api/v1/invitations/redeem", json={"token": "bogus"}, headers=auth_headers(make_caller())
        )
        assert resp.status_code == 400
        assert _error(resp)["code"] == "TOKEN_INVALID"

    async def test_list_and_revoke(self, client):
        owner = make_caller("owner@acme.com")
        org = await _create_org(client, owner)
        base = f"/api/v1/orgs/{org['id']}/invitations"
        await _invite(client, owner, org["id"], "u2@acme.com")

        listing = await client.get(base, headers=auth_headers(owner))
        [invitation] = listing.json()["data"]
        assert (invitation["email"], invitation["status"]) == ("u2@acme.com", "pending")

        resp = await client.delete(f"{base}/{invitation['id']}", headers=auth_headers(owner))
        assert resp.status_code == 200
        assert resp.json()["status"] == "revoked"
        assert (await client.get(base, headers=auth_headers(owner))).json()["data"] == []


class TestCommitFailure:
    async def test_failed_redeem_commit_is_503_and_nothing_persists(
        self, client, session_factory, monkeypatch
    ):
        owner, u2 = make_caller("owner@acme.com"), make_caller("u2@acme.com")
        org = await _create_org(client, owner)
        token = await _invite(client, owner, org["id"], u2.email)

        monkeypatch.setattr(
            AsyncSession,
            "commit",
            AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("connection reset"))),
        )
        resp = await client.post("/api/v1/invitations/redeem", json={"token": token}, headers=auth_headers(u2))
        assert resp.status_code == 503
        assert _error(resp)["code"] == "STORE_UNAVAILABLE"
        monkeypatch.undo()

        async with session_factory() as s:
            store = MembershipStore(s)
            assert await store.get_membership(uuid.UUID(org["id"]), u2.user_id) is None
            [invitation] = await store.list_live_invitations(uuid.UUID(org["id"]), utcnow())
            assert invitation.consumed_at is None

        retry = await client.post("/api/v1/invitations/redeem", json={"token": token}, headers=auth_headers(u2))
        assert retry.status_code == 200
        assert retry.json()["role"] == "member"

    async def test_failed_org_commit_is_503(self, client, monkeypatch):
        owner = make_caller()
        monkeypatch.setattr(
            AsyncSession,
            "commit",
            AsyncMock(side_effect=OperationalError("COMMIT", {}, Exception("connection reset"))),
        )
        resp = await client.post("/api/v1/orgs", json={"name": "Acme Dental"}, headers=auth_headers(owner))
        assert resp.status_code == 503
        monkeypatch.undo()

        resp = await client.get("/api/v1/orgs", headers=auth_headers(owner))
        assert resp.json()["data"] == []
