"""
Membership API endpoints.

GET    /api/v1/orgs/{orgId}/members           List members
POST   /api/v1/orgs/{orgId}/members           Add a user directly (admin/owner)
PATCH  /api/v1/orgs/{orgId}/members/{userId}  Change a member's role (admin/owner)
DELETE /api/v1/orgs/{orgId}/members/{userId}  Remove a member (admin/owner)
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from csdash.core.auth import get_store, require_org_admin, require_org_member
from csdash.services import members as member_service
from csdash.services.access import OrgAccess
from csdash.services.store import MembershipStore
from csdash_shared.schemas.members import (
    MemberAddRequest,
    MemberListResponse,
    MemberResponse,
    MemberRoleUpdateRequest,
)

router = APIRouter()


@router.get("", response_model=MemberListResponse)
async def list_members(
    access: OrgAccess = Depends(require_org_member),
    store: MembershipStore = Depends(get_store),
):
    members = await member_service.list_members(store, access.org_id)
    return MemberListResponse(data=[MemberResponse.model_validate(m) for m in members])


@router.post("", response_model=MemberResponse, status_code=201)
async def add_member(
    body: MemberAddRequest,
    access: OrgAccess = Depends(require_org_admin),
    store: MembershipStore = Depends(get_store),
):
    member = await member_service.add_member(store, access, body.user_id, body.role)
    await store.commit()
    return MemberResponse.model_validate(member)


@router.patch("/{userId}", response_model=MemberResponse)
async def change_member_role(
    userId: uuid.UUID,
    body: MemberRoleUpdateRequest,
    access: OrgAccess = Depends(require_org_admin),
    store: MembershipStore = Depends(get_store),
):
    member = await member_service.change_member_role(store, access, userId, body.role)
    await store.commit()
    return MemberResponse.model_validate(member)


@router.delete("/{userId}", status_code=204)
async def remove_member(
    userId: uuid.UUID,
    access: OrgAccess = Depends(require_org_admin),
    store: MembershipStore = Depends(get_store),
):
    """Remove a member. Immediately revokes their access to the org and its DSOs."""
    await member_service.remove_member(store, access, userId)
    await store.commit()
