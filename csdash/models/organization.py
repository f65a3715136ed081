"""Organization model."""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import TimestampMixin, UUIDMixin


class Organization(UUIDMixin, TimestampMixin, SQLModel, table=True):
    __tablename__ = "organizations"

    name: str = Field(nullable=False, index=True)
    # Derived once from the name at creation; never regenerated
    slug: str = Field(unique=True, nullable=False, index=True)
    created_by: Optional[uuid.UUID] = None
