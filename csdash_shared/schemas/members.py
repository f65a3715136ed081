"""Organization membership schemas."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from .common import OrgRole


class MemberAddRequest(BaseModel):
    """Add an existing user to the org directly (no invitation)."""
    user_id: uuid.UUID
    role: OrgRole = OrgRole.MEMBER


class MemberRoleUpdateRequest(BaseModel):
    role: OrgRole


class MemberResponse(BaseModel):
    org_id: uuid.UUID
    user_id: uuid.UUID
    role: OrgRole
    joined_at: datetime

    model_config = {"from_attributes": True}


class MemberListResponse(BaseModel):
    data: list[MemberResponse]
