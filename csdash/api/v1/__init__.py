"""
API v1 Router

Org-scoped endpoints are prefixed with /orgs/{orgId}; DSO-scoped ones with
/dsos/{dsoId}.
"""

from fastapi import APIRouter

from . import dsos, invitations, members, organizations

router = APIRouter()

router.include_router(organizations.router, tags=["Organizations"])
router.include_router(members.router, prefix="/orgs/{orgId}/members", tags=["Members"])
router.include_router(invitations.router_scoped, prefix="/orgs/{orgId}/invitations", tags=["Invitations"])
router.include_router(invitations.router_global, prefix="/invitations", tags=["Invitations"])
router.include_router(dsos.router_scoped, prefix="/orgs/{orgId}/dsos", tags=["DSOs"])
router.include_router(dsos.router_global, prefix="/dsos", tags=["DSOs"])


@router.get("/", tags=["API"])
async def api_root():
    """API root: returns version and available endpoints."""
    return {
        "api": "v1",
        "version": "0.1.0",
        "endpoints": [
            "/orgs",
            "/orgs/{orgId}/members",
            "/orgs/{orgId}/invitations",
            "/orgs/{orgId}/dsos",
            "/invitations/redeem",
            "/dsos/{dsoId}",
        ],
    }
