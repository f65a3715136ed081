"""
Access evaluator: may this caller act on this organization or DSO?

Evaluation is read-only. Callers run it before the requested read/write so
that a denial short-circuits with nothing applied. DSO access is always
derived from membership in the owning organization; there is no per-DSO
role table.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass

import structlog

from csdash.core.errors import InsufficientRole, NotAMember, ResourceNotFound
from csdash.core.roles import ELEVATED_ROLE, parse_role, satisfies
from csdash.services.store import MembershipStore
from csdash_shared.schemas.common import OrgRole

log = structlog.get_logger()


@dataclass(frozen=True)
class OrgAccess:
    org_id: uuid.UUID
    role: OrgRole

    @property
    def is_elevated(self) -> bool:
        return satisfies(self.role, ELEVATED_ROLE)


@dataclass(frozen=True)
class DsoAccess:
    dso_id: uuid.UUID
    org_id: uuid.UUID
    role: OrgRole


async def require_org_access(
    store: MembershipStore,
    caller_id: uuid.UUID,
    org_id: uuid.UUID,
    *,
    elevated: bool = False,
) -> OrgAccess:
    """Gate on membership, and on admin-or-better when ``elevated``.

    Returns the caller's role so the operation can apply finer rules
    (e.g. owner-only actions) itself.
    """
    member = await store.get_membership(org_id, caller_id)
    if member is None:
        log.info("access.denied", reason=NotAMember.code, user_id=str(caller_id), org_id=str(org_id))
        raise NotAMember()

    role = parse_role(member.role)
    if elevated and not satisfies(role, ELEVATED_ROLE):
        log.info(
            "access.denied",
            reason=InsufficientRole.code,
            user_id=str(caller_id),
            org_id=str(org_id),
            role=role.value,
        )
        raise InsufficientRole()

    return OrgAccess(org_id=org_id, role=role)


async def require_dso_access(
    store: MembershipStore,
    caller_id: uuid.UUID,
    dso_id: uuid.UUID,
) -> DsoAccess:
    """Resolve the DSO's owning org, then require plain membership in it."""
    org_id = await store.get_owning_org(dso_id)
    if org_id is None:
        log.info("access.denied", reason=ResourceNotFound.code, user_id=str(caller_id), dso_id=str(dso_id))
        raise ResourceNotFound("DSO not found")

    access = await require_org_access(store, caller_id, org_id, elevated=False)
    return DsoAccess(dso_id=dso_id, org_id=access.org_id, role=access.role)
