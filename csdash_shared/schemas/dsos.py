"""DSO (client) schemas."""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .common import OrgRole


class DsoCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class DsoResponse(BaseModel):
    id: uuid.UUID
    org_id: uuid.UUID
    name: str
    archived: bool = False
    created_at: datetime
    role: Optional[OrgRole] = None

    model_config = {"from_attributes": True}


class DsoListResponse(BaseModel):
    data: list[DsoResponse]
