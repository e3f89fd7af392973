"""
ActivityLog Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from app.schemas.user import UserReadPublic


class ActivityLogRead(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    user_id: uuid.UUID
    action: str
    entity_type: str
    entity_id: uuid.UUID
    details: dict[str, Any] | None
    created_at: datetime
    user: UserReadPublic | None = None

    model_config = {"from_attributes": True}


class ActivityCleanupResult(BaseModel):
    deleted: int
    older_than_days: int
