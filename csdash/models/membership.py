"""Organization membership (join table keyed by org + user)."""

from datetime import datetime
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import utcnow


class OrgMember(SQLModel, table=True):
    __tablename__ = "org_members"

    org_id: uuid.UUID = Field(foreign_key="organizations.id", primary_key=True)
    user_id: uuid.UUID = Field(primary_key=True, index=True)
    role: str = Field(nullable=False, default="member")  # owner | admin | member
    joined_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=sa.DateTime())
    updated_at: datetime = Field(default_factory=utcnow, nullable=False, sa_type=sa.DateTime())
