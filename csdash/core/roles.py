"""Organization role hierarchy (owner > admin > member)."""

from __future__ import annotations

from csdash_shared.schemas.common import OrgRole

# Higher rank = more privileges
ROLE_RANK: dict[OrgRole, int] = {
    OrgRole.MEMBER: 0,
    OrgRole.ADMIN: 1,
    OrgRole.OWNER: 2,
}

# Minimum role for "elevated" operations (rename, role grants, invites)
ELEVATED_ROLE = OrgRole.ADMIN


def rank(role: OrgRole) -> int:
    return ROLE_RANK[role]


def satisfies(held: OrgRole, required: OrgRole) -> bool:
    """True if ``held`` is at least as privileged as ``required``."""
    return rank(held) >= rank(required)


def parse_role(value: str | OrgRole) -> OrgRole:
    """Convert a stored/raw role string to an OrgRole.

    Raises ValueError for anything outside the closed set.
    """
    if isinstance(value, OrgRole):
        return value
    try:
        return OrgRole(value)
    except ValueError:
        raise ValueError(f"Invalid organization role: {value!r}") from None
