"""
Notification Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field, computed_field

from app.schemas.pagination import PaginatedResponse


class NotificationRead(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    project_id: uuid.UUID | None
    type: str
    title: str
    message: str
    data: dict[str, Any] | None
    is_read: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class NotificationPage(PaginatedResponse[NotificationRead]):
    """A page of notifications plus the caller's overall unread count."""

    unread_count: int

    @computed_field  # type: ignore[misc]
    @property
    def has_more(self) -> bool:
        return self.page * self.size < self.total


class UnreadCount(BaseModel):
    unread_count: int


class ProjectUnreadCount(BaseModel):
    project_id: uuid.UUID
    unread_count: int


class NotificationTestCreate(BaseModel):
    title: str = Field(default="Test notification", max_length=200)
    message: str = Field(default="This is a test notification", max_length=1000)
