"""
Membership store adapter.

The narrow persistence surface used by the access evaluator and the
invitation lifecycle: point lookups and single-row atomic writes keyed by
(org_id, user_id), by DSO id and by invitation token hash. Driver failures
surface as StoreUnavailable; nothing here retries.
"""

from __future__ import annotations

import functools
import uuid
from datetime import datetime
from typing import Optional

import structlog
from sqlalchemy import delete, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import InterfaceError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from csdash.core.errors import StoreUnavailable
from csdash.core.roles import parse_role
from csdash.models.base import utcnow
from csdash.models.dso import Dso
from csdash.models.invitation import OrgInvitation
from csdash.models.membership import OrgMember
from csdash_shared.schemas.common import OrgRole

log = structlog.get_logger()

_INSERT_BY_DIALECT = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


def _translate_store_errors(fn):
    """Surface driver failures and timeouts as StoreUnavailable."""

    @functools.wraps(fn)
    async def wrapper(*args, **kwargs):
        try:
            return await fn(*args, **kwargs)
        except (OperationalError, InterfaceError, TimeoutError) as exc:
            log.warning("store.unavailable", operation=fn.__name__, error=str(exc))
            raise StoreUnavailable() from exc

    return wrapper


class MembershipStore:
    """Store adapter bound to one request-scoped session (one transaction)."""

    def __init__(self, session: AsyncSession):
        self.session = session

    @_translate_store_errors
    async def add(self, obj):
        """Stage a new row and flush it so generated ids and constraints apply."""
        self.session.add(obj)
        await self.session.flush()
        return obj

    @_translate_store_errors
    async def execute(self, stmt):
        return await self.session.execute(stmt)

    @_translate_store_errors
    async def get(self, model, ident):
        return await self.session.get(model, ident)

    @_translate_store_errors
    async def commit(self) -> None:
        await self.session.commit()

    def _insert(self, model):
        dialect = self.session.bind.dialect.name
        try:
            return _INSERT_BY_DIALECT[dialect](model)
        except KeyError:
            raise NotImplementedError(f"Upsert not supported for dialect '{dialect}'") from None

    # -----------------------------------------------------------------------
    # Memberships
    # -----------------------------------------------------------------------

    @_translate_store_errors
    async def get_membership(
        self, org_id: uuid.UUID, user_id: uuid.UUID
    ) -> Optional[OrgMember]:
        result = await self.session.execute(
            select(OrgMember)
            .where(OrgMember.org_id == org_id, OrgMember.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @_translate_store_errors
    async def upsert_membership(
        self,
        org_id: uuid.UUID,
        user_id: uuid.UUID,
        role: OrgRole | str,
        *,
        keep_existing: bool = False,
    ) -> OrgMember:
        """Create or update the (org, user) membership in one statement.

        With keep_existing=True an existing row wins and is returned as-is,
        so a concurrent second writer degenerates into a no-op.
        """
        role = parse_role(role)
        now = utcnow()
        stmt = self._insert(OrgMember).values(
            org_id=org_id,
            user_id=user_id,
            role=role.value,
            joined_at=now,
            updated_at=now,
        )
        if keep_existing:
            stmt = stmt.on_conflict_do_nothing(index_elements=["org_id", "user_id"])
        else:
            stmt = stmt.on_conflict_do_update(
                index_elements=["org_id", "user_id"],
                set_={"role": role.value, "updated_at": now},
            )
        await self.session.execute(stmt)

        member = await self.get_membership(org_id, user_id)
        if member is None:
            # Removed concurrently between the write and the read-back
            raise StoreUnavailable("Membership write was not visible")
        return member

    @_translate_store_errors
    async def delete_membership(self, org_id: uuid.UUID, user_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            delete(OrgMember).where(
                OrgMember.org_id == org_id, OrgMember.user_id == user_id
            )
        )
        return result.rowcount > 0

    @_translate_store_errors
    async def owner_ids(
        self, org_id: uuid.UUID, *, for_update: bool = False
    ) -> list[uuid.UUID]:
        """User ids holding the owner role.

        With for_update=True the owner rows stay locked until the transaction
        ends, so concurrent demotions and removals see each other.
        """
        stmt = select(OrgMember.user_id).where(
            OrgMember.org_id == org_id, OrgMember.role == OrgRole.OWNER.value
        )
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    @_translate_store_errors
    async def list_memberships(self, org_id: uuid.UUID) -> list[OrgMember]:
        result = await self.session.execute(
            select(OrgMember)
            .where(OrgMember.org_id == org_id)
            .order_by(OrgMember.joined_at)
        )
        return list(result.scalars().all())

    # -----------------------------------------------------------------------
    # DSO ownership
    # -----------------------------------------------------------------------

    @_translate_store_errors
    async def get_owning_org(self, dso_id: uuid.UUID) -> Optional[uuid.UUID]:
        result = await self.session.execute(
            select(Dso.org_id).where(Dso.id == dso_id)
        )
        return result.scalar_one_or_none()

    # -----------------------------------------------------------------------
    # Invitations
    # -----------------------------------------------------------------------

    @_translate_store_errors
    async def add_invitation(self, invitation: OrgInvitation) -> OrgInvitation:
        return await self.add(invitation)

    @_translate_store_errors
    async def get_invitation(self, invitation_id: uuid.UUID) -> Optional[OrgInvitation]:
        result = await self.session.execute(
            select(OrgInvitation)
            .where(OrgInvitation.id == invitation_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @_translate_store_errors
    async def get_invitation_by_token_hash(self, token_hash: str) -> Optional[OrgInvitation]:
        result = await self.session.execute(
            select(OrgInvitation)
            .where(OrgInvitation.token_hash == token_hash)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @_translate_store_errors
    async def claim_invitation(
        self, invitation_id: uuid.UUID, user_id: uuid.UUID, now: datetime
    ) -> bool:
        """Mark an invitation consumed by ``user_id``.

        Conditional on it still being unconsumed and unrevoked, so exactly
        one concurrent caller gets True.
        """
        result = await self.session.execute(
            update(OrgInvitation)
            .where(
                OrgInvitation.id == invitation_id,
                OrgInvitation.consumed_at.is_(None),
                OrgInvitation.revoked_at.is_(None),
            )
            .values(consumed_at=now, consumed_by=user_id)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @_translate_store_errors
    async def revoke_invitation(self, invitation_id: uuid.UUID, now: datetime) -> bool:
        result = await self.session.execute(
            update(OrgInvitation)
            .where(
                OrgInvitation.id == invitation_id,
                OrgInvitation.consumed_at.is_(None),
                OrgInvitation.revoked_at.is_(None),
            )
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1

    @_translate_store_errors
    async def list_live_invitations(
        self, org_id: uuid.UUID, now: datetime
    ) -> list[OrgInvitation]:
        """Pending (unconsumed, unrevoked, unexpired) invitations for an org."""
        result = await self.session.execute(
            select(OrgInvitation)
            .where(
                OrgInvitation.org_id == org_id,
                OrgInvitation.consumed_at.is_(None),
                OrgInvitation.revoked_at.is_(None),
                OrgInvitation.expires_at > now,
            )
            .order_by(OrgInvitation.created_at.desc())
        )
        return list(result.scalars().all())

    @_translate_store_errors
    async def find_live_invitation(
        self, org_id: uuid.UUID, email: str, now: datetime
    ) -> Optional[OrgInvitation]:
        result = await self.session.execute(
            select(OrgInvitation).where(
                OrgInvitation.org_id == org_id,
                OrgInvitation.email == email,
                OrgInvitation.consumed_at.is_(None),
                OrgInvitation.revoked_at.is_(None),
                OrgInvitation.expires_at > now,
            )
        )
        return result.scalars().first()
