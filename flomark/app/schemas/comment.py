"""
Comment Pydantic schemas.
Content is trimmed before length checks so whitespace-only bodies are rejected.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.user import UserReadPublic


class _CommentBody(BaseModel):
    content: str = Field(min_length=1, max_length=10000)

    @field_validator("content", mode="before")
    @classmethod
    def strip_content(cls, v: object) -> object:
        return v.strip() if isinstance(v, str) else v


class CommentCreate(_CommentBody):
    pass


class CommentUpdate(_CommentBody):
    pass


class CommentRead(BaseModel):
    id: uuid.UUID
    content: str
    task_id: uuid.UUID
    author_id: uuid.UUID
    created_at: datetime
    updated_at: datetime
    author: UserReadPublic | None = None

    model_config = {"from_attributes": True}

