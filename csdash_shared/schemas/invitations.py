"""Invitation schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


class InvitationStatus(str, Enum):
    PENDING = "pending"
    REDEEMED = "redeemed"
    EXPIRED = "expired"
    REVOKED = "revoked"


class InvitationCreateRequest(BaseModel):
    email: EmailStr


class InvitationRedeemRequest(BaseModel):
    token: str = Field(min_length=1, max_length=256)


class InvitationResponse(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    email: str
    status: InvitationStatus
    created_at: datetime
    expires_at: datetime
    consumed_at: Optional[datetime] = None


class InvitationIssueResponse(BaseModel):
    """Returned once on issue. The token is never retrievable again."""
    invitation: InvitationResponse
    token: str


class InvitationListResponse(BaseModel):
    data: list[InvitationResponse]
