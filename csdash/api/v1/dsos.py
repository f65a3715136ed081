"""
DSO API endpoints.

GET    /api/v1/orgs/{orgId}/dsos  List the org's DSOs (members)
POST   /api/v1/orgs/{orgId}/dsos  Register a DSO under the org (admin/owner)
GET    /api/v1/dsos/{dsoId}       Get one DSO (members of its owning org)
"""

from __future__ import annotations

from fastapi import APIRouter, Depends

from csdash.core.auth import get_store, require_dso_member, require_org_admin, require_org_member
from csdash.models.dso import Dso
from csdash.services import dsos as dso_service
from csdash.services.access import DsoAccess, OrgAccess
from csdash.services.store import MembershipStore
from csdash_shared.schemas.common import OrgRole
from csdash_shared.schemas.dsos import DsoCreateRequest, DsoListResponse, DsoResponse


def _dso_response(dso: Dso, role: OrgRole | None = None) -> DsoResponse:
    return DsoResponse(
        id=dso.id,
        org_id=dso.org_id,
        name=dso.name,
        archived=dso.archived,
        created_at=dso.created_at,
        role=role,
    )


router_scoped = APIRouter()


@router_scoped.get("", response_model=DsoListResponse)
async def list_dsos(
    access: OrgAccess = Depends(require_org_member),
    store: MembershipStore = Depends(get_store),
):
    dsos = await dso_service.list_org_dsos(store, access.org_id)
    return DsoListResponse(data=[_dso_response(d) for d in dsos])


@router_scoped.post("", response_model=DsoResponse, status_code=201)
async def create_dso(
    body: DsoCreateRequest,
    access: OrgAccess = Depends(require_org_admin),
    store: MembershipStore = Depends(get_store),
):
    dso = await dso_service.create_dso(store, access.org_id, body.name)
    await store.commit()
    return _dso_response(dso, access.role)


router_global = APIRouter()


@router_global.get("/{dsoId}", response_model=DsoResponse)
async def get_dso(
    access: DsoAccess = Depends(require_dso_member),
    store: MembershipStore = Depends(get_store),
):
    dso = await dso_service.get_dso(store, access.dso_id)
    return _dso_response(dso, access.role)
