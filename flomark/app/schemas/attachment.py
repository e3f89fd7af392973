"""
Attachment Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel

from app.schemas.user import UserReadPublic


class AttachmentRead(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    filename: str
    original_name: str
    mime_type: str
    size: int
    url: str
    uploaded_by_id: uuid.UUID
    created_at: datetime
    uploader: UserReadPublic | None = None

    model_config = {"from_attributes": True}
