"""
Organization API endpoints.

GET    /api/v1/orgs          List orgs for the authenticated user
POST   /api/v1/orgs          Create a new org (creator becomes owner)
GET    /api/v1/orgs/{orgId}  Get org details and the caller's role
PATCH  /api/v1/orgs/{orgId}  Rename org (admin/owner; slug unchanged)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from csdash.core.auth import (
    CallerIdentity,
    get_caller,
    get_store,
    require_org_admin,
    require_org_member,
)
from csdash.models.organization import Organization
from csdash.services import organizations as org_service
from csdash.services.access import OrgAccess
from csdash.services.store import MembershipStore
from csdash_shared.schemas.common import OrgRole
from csdash_shared.schemas.organizations import (
    OrgCreateRequest,
    OrgListResponse,
    OrgResponse,
    OrgUpdateRequest,
)

router = APIRouter()


def _org_response(org: Organization, role: OrgRole | None = None) -> OrgResponse:
    return OrgResponse(
        id=org.id,
        name=org.name,
        slug=org.slug,
        created_at=org.created_at,
        updated_at=org.updated_at,
        role=role,
    )


@router.get("/orgs", response_model=OrgListResponse)
async def list_orgs(
    caller: CallerIdentity = Depends(get_caller),
    store: MembershipStore = Depends(get_store),
):
    """List orgs the authenticated user belongs to."""
    items = await org_service.list_user_orgs(store, caller.user_id)
    return OrgListResponse(data=items)


@router.post("/orgs", response_model=OrgResponse, status_code=201)
async def create_org(
    body: OrgCreateRequest,
    caller: CallerIdentity = Depends(get_caller),
    store: MembershipStore = Depends(get_store),
):
    """Create a new organization. The creator becomes its owner."""
    org = await org_service.create_org(store, body.name, caller.user_id)
    await store.commit()
    return _org_response(org, OrgRole.OWNER)


@router.get("/orgs/{orgId}", response_model=OrgResponse)
async def get_org(
    access: OrgAccess = Depends(require_org_member),
    store: MembershipStore = Depends(get_store),
):
    org = await org_service.get_org(store, access.org_id)
    return _org_response(org, access.role)


@router.patch("/orgs/{orgId}", response_model=OrgResponse)
async def update_org(
    body: OrgUpdateRequest,
    access: OrgAccess = Depends(require_org_admin),
    store: MembershipStore = Depends(get_store),
):
    """Rename the org (admin/owner only)."""
    org = await org_service.rename_org(store, access.org_id, body.name)
    await store.commit()
    return _org_response(org, access.role)
