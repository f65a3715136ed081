"""Single-use organization invitation."""

from datetime import datetime
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import UUIDMixin, utcnow


class OrgInvitation(UUIDMixin, SQLModel, table=True):
    __tablename__ = "org_invitations"

    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    email: str = Field(nullable=False, index=True)  # normalised (trimmed, lowercase)
    token_hash: str = Field(unique=True, nullable=False, index=True)  # sha256 hex
    invited_by: uuid.UUID = Field(nullable=False)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=sa.DateTime())
    expires_at: datetime = Field(nullable=False, sa_type=sa.DateTime())
    consumed_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
    consumed_by: Optional[uuid.UUID] = None
    revoked_at: Optional[datetime] = Field(default=None, sa_type=sa.DateTime())
