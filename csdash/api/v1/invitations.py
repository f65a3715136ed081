"""
Invitation API endpoints.

GET    /api/v1/orgs/{orgId}/invitations                 List pending invitations
POST   /api/v1/orgs/{orgId}/invitations                 Issue an invitation (admin/owner)
DELETE /api/v1/orgs/{orgId}/invitations/{invitationId}  Revoke a pending invitation (admin/owner)
POST   /api/v1/invitations/redeem                       Redeem a token as the caller
"""

from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends

from csdash.core.auth import (
    CallerIdentity,
    get_caller,
    get_store,
    require_org_admin,
    require_org_member,
)
from csdash.models.invitation import OrgInvitation
from csdash.services import invitations as invitation_service
from csdash.services.access import OrgAccess
from csdash.services.store import MembershipStore
from csdash_shared.schemas.invitations import (
    InvitationCreateRequest,
    InvitationIssueResponse,
    InvitationListResponse,
    InvitationRedeemRequest,
    InvitationResponse,
)
from csdash_shared.schemas.members import MemberResponse


def _invitation_response(invitation: OrgInvitation) -> InvitationResponse:
    return InvitationResponse(
        id=invitation.id,
        org_id=invitation.org_id,
        email=invitation.email,
        status=invitation_service.invitation_status(invitation),
        created_at=invitation.created_at,
        expires_at=invitation.expires_at,
        consumed_at=invitation.consumed_at,
    )


# ---------------------------------------------------------------------------
# Org-scoped routes
# ---------------------------------------------------------------------------
router_scoped = APIRouter()


@router_scoped.get("", response_model=InvitationListResponse)
async def list_invitations(
    access: OrgAccess = Depends(require_org_member),
    store: MembershipStore = Depends(get_store),
):
    """List pending, unexpired invitations. Any member can view."""
    items = await invitation_service.list_pending_invitations(store, access.org_id)
    return InvitationListResponse(data=[_invitation_response(i) for i in items])


@router_scoped.post("", response_model=InvitationIssueResponse, status_code=201)
async def issue_invitation(
    body: InvitationCreateRequest,
    access: OrgAccess = Depends(require_org_admin),
    caller: CallerIdentity = Depends(get_caller),
    store: MembershipStore = Depends(get_store),
):
    """Issue an invitation (admin/owner). The token is returned once."""
    invitation, token = await invitation_service.issue_invitation(
        store, access.org_id, body.email, caller
    )
    await store.commit()
    return InvitationIssueResponse(invitation=_invitation_response(invitation), token=token)


@router_scoped.delete("/{invitationId}", response_model=InvitationResponse)
async def revoke_invitation(
    invitationId: uuid.UUID,
    access: OrgAccess = Depends(require_org_admin),
    store: MembershipStore = Depends(get_store),
):
    invitation = await invitation_service.revoke_invitation(store, access.org_id, invitationId)
    await store.commit()
    return _invitation_response(invitation)


# ---------------------------------------------------------------------------
# Non-org-scoped routes
# ---------------------------------------------------------------------------
router_global = APIRouter()


@router_global.post("/redeem", response_model=MemberResponse)
async def redeem_invitation(
    body: InvitationRedeemRequest,
    caller: CallerIdentity = Depends(get_caller),
    store: MembershipStore = Depends(get_store),
):
    """Redeem an invitation token. Safe to retry: a replay returns the same membership."""
    member = await invitation_service.redeem_invitation(store, body.token, caller)
    await store.commit()
    return MemberResponse.model_validate(member)
