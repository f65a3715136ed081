"""DSO (client) service: register under an org, list, fetch."""

from __future__ import annotations

import uuid

import structlog
from fastapi import HTTPException
from sqlmodel import select

from csdash.models.dso import Dso
from csdash.services.store import MembershipStore

log = structlog.get_logger()


async def create_dso(store: MembershipStore, org_id: uuid.UUID, name: str) -> Dso:
    dso = await store.add(Dso(org_id=org_id, name=name.strip()))
    log.info("dso.created", dso_id=str(dso.id), org_id=str(org_id))
    return dso


async def list_org_dsos(store: MembershipStore, org_id: uuid.UUID) -> list[Dso]:
    """All non-archived DSOs of an org."""
    result = await store.execute(
        select(Dso)
        .where(Dso.org_id == org_id, Dso.archived == False)  # noqa: E712
        .order_by(Dso.name)
    )
    return list(result.scalars().all())


async def get_dso(store: MembershipStore, dso_id: uuid.UUID) -> Dso:
    dso = await store.get(Dso, dso_id)
    if dso is None:
        raise HTTPException(status_code=404, detail="DSO not found")
    return dso
