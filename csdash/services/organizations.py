"""
Organization service: create with a derived slug, list, get, rename.
"""

from __future__ import annotations

import re
import uuid

import structlog
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from sqlmodel import select

from csdash.models.base import utcnow
from csdash.models.membership import OrgMember
from csdash.models.organization import Organization
from csdash.services.store import MembershipStore
from csdash_shared.schemas.common import OrgRole

log = structlog.get_logger()

_SLUG_STRIP = re.compile(r"[^a-z0-9\s-]")
_SLUG_SPACES = re.compile(r"\s+")
_SLUG_HYPHENS = re.compile(r"-+")


def generate_org_slug(name: str) -> str:
    """Normalise a name into a URL-safe slug.

    Idempotent: generate_org_slug(generate_org_slug(x)) == generate_org_slug(x).
    """
    slug = name.lower().strip()
    slug = _SLUG_STRIP.sub("", slug)
    slug = _SLUG_SPACES.sub("-", slug)
    slug = _SLUG_HYPHENS.sub("-", slug)
    return slug.strip("-")


async def create_org(
    store: MembershipStore, name: str, creator_id: uuid.UUID
) -> Organization:
    """Create an org and make the creator its owner, in one transaction."""
    slug = generate_org_slug(name)
    if not slug:
        raise HTTPException(
            status_code=400,
            detail="Organization name must contain at least one alphanumeric character",
        )

    existing = await store.execute(
        select(Organization.id).where(Organization.slug == slug)
    )
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=409,
            detail="An organization with this name already exists. Please choose a different name.",
        )

    org = Organization(name=name, slug=slug, created_by=creator_id)
    try:
        await store.add(org)
    except IntegrityError:
        raise HTTPException(
            status_code=409,
            detail="An organization with this name already exists. Please choose a different name.",
        )

    await store.upsert_membership(org.id, creator_id, OrgRole.OWNER)

    log.info("org.created", org_id=str(org.id), slug=slug, creator=str(creator_id))
    return org


async def list_user_orgs(
    store: MembershipStore, user_id: uuid.UUID
) -> list[dict]:
    """List all orgs a user belongs to, with their role."""
    result = await store.execute(
        select(Organization, OrgMember.role)
        .join(OrgMember, OrgMember.org_id == Organization.id)
        .where(OrgMember.user_id == user_id)
        .order_by(Organization.name)
    )
    return [
        {"id": org.id, "name": org.name, "slug": org.slug, "role": role}
        for org, role in result.all()
    ]


async def get_org(store: MembershipStore, org_id: uuid.UUID) -> Organization:
    org = await store.get(Organization, org_id)
    if org is None:
        raise HTTPException(status_code=404, detail="Organization not found")
    return org


async def rename_org(
    store: MembershipStore, org_id: uuid.UUID, name: str
) -> Organization:
    """Rename an org. The slug is a stable identifier and is left as-is."""
    org = await get_org(store, org_id)
    org.name = name
    org.updated_at = utcnow()
    await store.add(org)

    log.info("org.renamed", org_id=str(org.id), slug=org.slug)
    return org
