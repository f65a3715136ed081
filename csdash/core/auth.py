"""
Caller identity and authorization dependencies.

Supports:
- Session tokens: HS256 JWTs issued by the identity provider, read from the
  session cookie or an ``Authorization: Bearer`` header
- Org-scoped gates (member / elevated) and DSO-scoped gates, evaluated
  before any handler body runs
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from sqlalchemy.ext.asyncio import AsyncSession

from csdash.core.config import get_settings
from csdash.core.database import get_session
from csdash.core.errors import Unauthenticated
from csdash.services.access import DsoAccess, OrgAccess, require_dso_access, require_org_access
from csdash.services.store import MembershipStore

log = structlog.get_logger()
settings = get_settings()

authorization_header = APIKeyHeader(name="Authorization", auto_error=False)


@dataclass(frozen=True)
class CallerIdentity:
    """Verified (user_id, email) pair for the current request."""

    user_id: uuid.UUID
    email: str


# ---------------------------------------------------------------------------
# Session tokens
# ---------------------------------------------------------------------------

def create_session_token(
    user_id: uuid.UUID,
    email: str,
    *,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a signed session token (identity-provider side; used by tests and dev tooling)."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(user_id),
        "email": email,
        "iat": now,
        "exp": now + (expires_delta or timedelta(hours=1)),
    }
    return jwt.encode(payload, settings.session_secret, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> CallerIdentity:
    """Verify a session token. Raises Unauthenticated on any failure."""
    try:
        payload = jwt.decode(
            token,
            settings.session_secret,
            algorithms=[settings.session_algorithm],
            options={"require": ["sub", "exp"]},
        )
        user_id = uuid.UUID(payload["sub"])
    except (jwt.PyJWTError, ValueError):
        raise Unauthenticated("Invalid or expired session")

    email = payload.get("email")
    if not isinstance(email, str) or not email:
        raise Unauthenticated("Session has no verified email")
    return CallerIdentity(user_id=user_id, email=email)


# ---------------------------------------------------------------------------
# Authentication dependencies
# ---------------------------------------------------------------------------

async def get_caller(
    request: Request,
    authorization: Optional[str] = Depends(authorization_header),
) -> CallerIdentity:
    """Main authentication dependency. Tries the Bearer header, then the session cookie."""
    if authorization and authorization.startswith("Bearer "):
        return decode_session_token(authorization[7:].strip())

    token = request.cookies.get(settings.session_cookie_name)
    if token:
        return decode_session_token(token)

    raise Unauthenticated()


def get_store(session: AsyncSession = Depends(get_session)) -> MembershipStore:
    return MembershipStore(session)


# ---------------------------------------------------------------------------
# Authorization dependencies
# ---------------------------------------------------------------------------

async def require_org_member(
    orgId: uuid.UUID,
    caller: CallerIdentity = Depends(get_caller),
    store: MembershipStore = Depends(get_store),
) -> OrgAccess:
    """Any member of the org can access this endpoint."""
    return await require_org_access(store, caller.user_id, orgId)


async def require_org_admin(
    orgId: uuid.UUID,
    caller: CallerIdentity = Depends(get_caller),
    store: MembershipStore = Depends(get_store),
) -> OrgAccess:
    """Requires admin or owner role."""
    return await require_org_access(store, caller.user_id, orgId, elevated=True)


async def require_dso_member(
    dsoId: uuid.UUID,
    caller: CallerIdentity = Depends(get_caller),
    store: MembershipStore = Depends(get_store),
) -> DsoAccess:
    """Any member of the DSO's owning org can access this endpoint."""
    return await require_dso_access(store, caller.user_id, dsoId)
