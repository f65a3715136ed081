"""Tests for org creation, slugs, listing and rename."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest
from fastapi import HTTPException
from sqlalchemy.exc import OperationalError

from csdash.core.errors import StoreUnavailable
from csdash.services.organizations import (
    create_org,
    generate_org_slug,
    get_org,
    list_user_orgs,
    rename_org,
)
from csdash_shared.schemas.common import OrgRole

from .factories import make_caller


class TestGenerateOrgSlug:
    @pytest.mark.parametrize(
        "name,expected",
        [
            ("Acme Dental, LLC", "acme-dental-llc"),
            ("  Bright   Smiles  ", "bright-smiles"),
            ("Smile--Co", "smile-co"),
            ("-Leading and trailing-", "leading-and-trailing"),
            ("Dr. Ortiz & Partners", "dr-ortiz-partners"),
            ("Clinic 42", "clinic-42"),
        ],
    )
    def test_examples(self, name, expected):
        assert generate_org_slug(name) == expected

    @pytest.mark.parametrize("name", ["Acme Dental, LLC", "  A  b -- c ", "already-a-slug"])
    def test_idempotent(self, name):
        once = generate_org_slug(name)
        assert generate_org_slug(once) == once

    def test_non_alphanumeric_name_gives_empty_slug(self):
        assert generate_org_slug("!!! ***") == ""


class TestCreateOrg:
    async def test_creator_becomes_owner(self, store):
        creator = make_caller()
        org = await create_org(store, "Acme Dental, LLC", creator.user_id)

        assert org.slug == "acme-dental-llc"
        assert org.created_by == creator.user_id
        member = await store.get_membership(org.id, creator.user_id)
        assert member.role == OrgRole.OWNER.value
        assert await store.owner_ids(org.id) == [creator.user_id]

    async def test_empty_slug_rejected(self, store):
        with pytest.raises(HTTPException) as exc_info:
            await create_org(store, "???", make_caller().user_id)
        assert exc_info.value.status_code == 400

    async def test_driver_failure_on_insert_is_store_unavailable(self, store, monkeypatch):
        failure = OperationalError("INSERT", {}, Exception("connection reset"))
        monkeypatch.setattr(store.session, "flush", AsyncMock(side_effect=failure))

        with pytest.raises(StoreUnavailable) as exc_info:
            await create_org(store, "Acme Dental", make_caller().user_id)
        assert exc_info.value.__cause__ is failure

    async def test_slug_collision_conflicts(self, store):
        await create_org(store, "Acme Dental, LLC", make_caller().user_id)
        with pytest.raises(HTTPException) as exc_info:
            await create_org(store, "ACME dental llc", make_caller().user_id)
        assert exc_info.value.status_code == 409


class TestReadAndRename:
    async def test_list_user_orgs_includes_role(self, store):
        alice, bob = make_caller(), make_caller()
        acme = await create_org(store, "Acme Dental", alice.user_id)
        await create_org(store, "Zeta Ortho", bob.user_id)
        await store.upsert_membership(acme.id, bob.user_id, OrgRole.ADMIN)

        assert [(o["slug"], o["role"]) for o in await list_user_orgs(store, bob.user_id)] == [
            ("acme-dental", "admin"),
            ("zeta-ortho", "owner"),
        ]
        assert [o["slug"] for o in await list_user_orgs(store, alice.user_id)] == ["acme-dental"]

    async def test_list_user_orgs_empty_for_stranger(self, store):
        await create_org(store, "Acme Dental", make_caller().user_id)
        assert await list_user_orgs(store, make_caller().user_id) == []

    async def test_get_unknown_org(self, store):
        with pytest.raises(HTTPException) as exc_info:
            await get_org(store, uuid.uuid4())
        assert exc_info.value.status_code == 404

    async def test_rename_keeps_slug(self, store):
        org = await create_org(store, "Acme Dental", make_caller().user_id)
        renamed = await rename_org(store, org.id, "Acme Dental Group")

        assert renamed.name == "Acme Dental Group"
        assert renamed.slug == "acme-dental"
