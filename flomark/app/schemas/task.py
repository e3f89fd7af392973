"""
Task Pydantic schemas.
Includes create/update/read variants, move and reorder payloads, and the
assignee/label/subtask sub-resources.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.schemas.board import LabelRead
from app.schemas.user import UserReadPublic


# ── Create ────────────────────────────────────────────────────────────────────

class TaskCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=10000)
    due_date: datetime | None = None


# ── Update ────────────────────────────────────────────────────────────────────

class TaskUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    description: str | None = Field(default=None, max_length=10000)
    due_date: datetime | None = None
    is_completed: bool | None = None


# ── Move / reorder ────────────────────────────────────────────────────────────

class TaskMove(BaseModel):
    list_id: uuid.UUID
    position: int | None = Field(default=None, ge=0)


class TaskReorder(BaseModel):
    task_ids: list[uuid.UUID]

    @field_validator("task_ids")
    @classmethod
    def unique_ids(cls, v: list[uuid.UUID]) -> list[uuid.UUID]:
        if len(set(v)) != len(v):
            raise ValueError("Duplicate ids in reorder payload")
        return v


# ── Sub-resources ─────────────────────────────────────────────────────────────

class TaskMemberAssign(BaseModel):
    user_id: uuid.UUID


class TaskLabelAssign(BaseModel):
    label_id: uuid.UUID


class SubTaskCreate(BaseModel):
    name: str = Field(min_length=2, max_length=100)


class SubTaskUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=100)
    is_completed: bool | None = None


class SubTaskRead(BaseModel):
    id: uuid.UUID
    task_id: uuid.UUID
    name: str
    is_completed: bool
    position: int
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Read ──────────────────────────────────────────────────────────────────────

class TaskRead(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    list_id: uuid.UUID
    name: str
    description: str | None
    due_date: datetime | None
    position: int
    is_completed: bool
    created_by_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime
    members: list[UserReadPublic] = []
    labels: list[LabelRead] = []
    subtasks: list[SubTaskRead] = []

    model_config = {"from_attributes": True}
