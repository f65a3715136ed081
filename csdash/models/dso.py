"""DSO (client) model. Each DSO is owned by exactly one organization."""

import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Dso(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "dsos"

    org_id: uuid.UUID = Field(foreign_key="organizations.id", nullable=False, index=True)
    name: str = Field(nullable=False)
    archived: bool = Field(default=False, nullable=False)
