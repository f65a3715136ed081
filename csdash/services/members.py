"""
Membership management: list, add directly, change role, remove.

Callers have already passed the elevated gate where required; the
owner-specific rules live here.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import HTTPException

from csdash.core.errors import InsufficientRole
from csdash.core.roles import parse_role
from csdash.models.membership import OrgMember
from csdash.services.access import OrgAccess
from csdash.services.store import MembershipStore
from csdash_shared.schemas.common import OrgRole

log = structlog.get_logger()


async def list_members(store: MembershipStore, org_id: uuid.UUID) -> list[OrgMember]:
    return await store.list_memberships(org_id)


async def add_member(
    store: MembershipStore,
    access: OrgAccess,
    user_id: uuid.UUID,
    role: OrgRole,
) -> OrgMember:
    """Add an existing user to the org without an invitation."""
    if role == OrgRole.OWNER and access.role != OrgRole.OWNER:
        raise InsufficientRole("Only owners can grant the owner role")

    if await store.get_membership(access.org_id, user_id):
        raise HTTPException(
            status_code=409, detail="User is already a member of this organization"
        )

    member = await store.upsert_membership(access.org_id, user_id, role)
    log.info("member.added", org_id=str(access.org_id), user_id=str(user_id), role=role.value)
    return member


async def change_member_role(
    store: MembershipStore,
    access: OrgAccess,
    user_id: uuid.UUID,
    role: OrgRole,
) -> OrgMember:
    """Explicit role change. Concurrent changes are last-writer-wins."""
    target = await store.get_membership(access.org_id, user_id)
    if target is None:
        raise HTTPException(status_code=404, detail="User is not a member of this organization")

    current = parse_role(target.role)
    if OrgRole.OWNER in (current, role) and access.role != OrgRole.OWNER:
        raise InsufficientRole("Only owners can grant or change the owner role")

    if current == OrgRole.OWNER and role != OrgRole.OWNER:
        if len(await store.owner_ids(access.org_id, for_update=True)) <= 1:
            raise HTTPException(
                status_code=403,
                detail="Cannot demote the last owner of an organization. Transfer ownership first.",
            )

    member = await store.upsert_membership(access.org_id, user_id, role)
    log.info(
        "member.role_changed",
        org_id=str(access.org_id),
        user_id=str(user_id),
        old_role=current.value,
        new_role=role.value,
    )
    return member


async def remove_member(
    store: MembershipStore, access: OrgAccess, user_id: uuid.UUID
) -> None:
    target = await store.get_membership(access.org_id, user_id)
    if target is None:
        raise HTTPException(status_code=404, detail="User is not a member of this organization")

    if parse_role(target.role) == OrgRole.OWNER:
        if access.role != OrgRole.OWNER:
            raise InsufficientRole("Only owners can remove an owner")
        if len(await store.owner_ids(access.org_id, for_update=True)) <= 1:
            raise HTTPException(
                status_code=403,
                detail="Cannot remove the last owner of an organization. Transfer ownership first.",
            )

    await store.delete_membership(access.org_id, user_id)
    log.info("member.removed", org_id=str(access.org_id), user_id=str(user_id))
