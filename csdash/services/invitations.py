"""
Invitation lifecycle: issue, list, revoke and redeem single-use tokens.

States: Issued -> Redeemed (terminal) or Issued -> Expired (terminal,
computed from expires_at at check time, never stored). Redemption claims the
invitation and writes the membership in the caller's transaction, so the two
writes commit or roll back together.
"""

from __future__ import annotations

import hashlib
import secrets
import uuid
from datetime import datetime, timedelta
from typing import Optional

import structlog
from fastapi import HTTPException

from csdash.core.auth import CallerIdentity
from csdash.core.config import get_settings
from csdash.core.errors import EmailMismatch, TokenExpired, TokenInvalid
from csdash.models.base import utcnow
from csdash.models.invitation import OrgInvitation
from csdash.models.membership import OrgMember
from csdash.services.store import MembershipStore
from csdash_shared.schemas.common import OrgRole
from csdash_shared.schemas.invitations import InvitationStatus

log = structlog.get_logger()

# Role granted on redemption; anything higher is an explicit role change
REDEEMED_ROLE = OrgRole.MEMBER


def generate_invitation_token() -> str:
    return secrets.token_urlsafe(32)


def hash_invitation_token(token: str) -> str:
    """SHA-256 hex digest; only the hash is persisted."""
    return hashlib.sha256(token.encode()).hexdigest()


def normalize_email(email: str) -> str:
    return email.strip().lower()


def invitation_status(invitation: OrgInvitation, now: Optional[datetime] = None) -> InvitationStatus:
    now = now or utcnow()
    if invitation.consumed_at is not None:
        return InvitationStatus.REDEEMED
    if invitation.revoked_at is not None:
        return InvitationStatus.REVOKED
    if invitation.expires_at <= now:
        return InvitationStatus.EXPIRED
    return InvitationStatus.PENDING


async def issue_invitation(
    store: MembershipStore,
    org_id: uuid.UUID,
    email: str,
    invited_by: CallerIdentity,
    *,
    ttl: Optional[timedelta] = None,
    now: Optional[datetime] = None,
) -> tuple[OrgInvitation, str]:
    """Record a new invitation. Returns (invitation, plaintext_token).

    The token is returned only here; delivery is the identity provider's job.
    """
    now = now or utcnow()
    if ttl is None:
        ttl = timedelta(days=get_settings().invitation_ttl_days)
    email = normalize_email(email)

    if email == normalize_email(invited_by.email):
        raise HTTPException(status_code=400, detail="You cannot invite yourself")

    if await store.find_live_invitation(org_id, email, now):
        raise HTTPException(
            status_code=409, detail="A pending invite already exists for this email"
        )

    token = generate_invitation_token()
    invitation = OrgInvitation(
        org_id=org_id,
        email=email,
        token_hash=hash_invitation_token(token),
        invited_by=invited_by.user_id,
        created_at=now,
        expires_at=now + ttl,
    )
    await store.add_invitation(invitation)

    log.info(
        "invitation.issued",
        invitation_id=str(invitation.id),
        org_id=str(org_id),
        invited_by=str(invited_by.user_id),
        expires_at=invitation.expires_at.isoformat(),
    )
    return invitation, token


async def list_pending_invitations(
    store: MembershipStore, org_id: uuid.UUID, now: Optional[datetime] = None
) -> list[OrgInvitation]:
    return await store.list_live_invitations(org_id, now or utcnow())


async def revoke_invitation(
    store: MembershipStore,
    org_id: uuid.UUID,
    invitation_id: uuid.UUID,
    now: Optional[datetime] = None,
) -> OrgInvitation:
    """Withdraw a pending invitation so its token can no longer be redeemed."""
    now = now or utcnow()
    invitation = await store.get_invitation(invitation_id)
    if invitation is None or invitation.org_id != org_id:
        raise HTTPException(status_code=404, detail="Invitation not found")

    if not await store.revoke_invitation(invitation_id, now):
        raise HTTPException(status_code=409, detail="Invitation is no longer pending")

    log.info("invitation.revoked", invitation_id=str(invitation_id), org_id=str(org_id))
    return await store.get_invitation(invitation_id)


async def redeem_invitation(
    store: MembershipStore,
    token: str,
    caller: CallerIdentity,
    *,
    now: Optional[datetime] = None,
) -> OrgMember:
    """Turn an invitation into a ``member`` membership, exactly once.

    Re-redeeming by the same user (a re-clicked link, a retried request, or
    the loser of a concurrent race) returns the existing membership.
    """
    now = now or utcnow()

    invitation = await store.get_invitation_by_token_hash(hash_invitation_token(token))
    if invitation is None or invitation.revoked_at is not None:
        raise TokenInvalid()

    if invitation.consumed_at is None and invitation.expires_at <= now:
        raise TokenExpired()

    if normalize_email(caller.email) != invitation.email:
        raise EmailMismatch()

    if invitation.consumed_at is None:
        if await store.claim_invitation(invitation.id, caller.user_id, now):
            member = await store.upsert_membership(
                invitation.org_id, caller.user_id, REDEEMED_ROLE, keep_existing=True
            )
            log.info(
                "invitation.redeemed",
                invitation_id=str(invitation.id),
                org_id=str(invitation.org_id),
                user_id=str(caller.user_id),
                role=member.role,
            )
            return member

        # Lost the claim to a concurrent redemption; re-read the winner
        invitation = await store.get_invitation(invitation.id)
        if invitation is None or invitation.consumed_at is None:
            raise TokenInvalid()

    return await _replay_redemption(store, invitation, caller)


async def _replay_redemption(
    store: MembershipStore, invitation: OrgInvitation, caller: CallerIdentity
) -> OrgMember:
    if invitation.consumed_by != caller.user_id:
        raise TokenInvalid("Invitation has already been redeemed")

    member = await store.get_membership(invitation.org_id, caller.user_id)
    if member is None:
        # Membership was removed after redemption; the token stays spent
        raise TokenInvalid("Invitation has already been redeemed")

    log.info(
        "invitation.replayed",
        invitation_id=str(invitation.id),
        org_id=str(invitation.org_id),
        user_id=str(caller.user_id),
    )
    return member
