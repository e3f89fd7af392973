"""
Board, list and label Pydantic schemas, plus the shared reorder payloads.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field, field_validator

HEX_COLOR_PATTERN = r"^#[0-9a-fA-F]{6}$"


def _reject_duplicates(ids: list[uuid.UUID]) -> list[uuid.UUID]:
    if len(set(ids)) != len(ids):
        raise ValueError("Duplicate ids in reorder payload")
    return ids


# ── Board ─────────────────────────────────────────────────────────────────────

class BoardCreate(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    description: str | None = Field(default=None, max_length=500)


class BoardUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    description: str | None = Field(default=None, max_length=500)


class BoardReorder(BaseModel):
    board_ids: list[uuid.UUID]

    @field_validator("board_ids")
    @classmethod
    def unique_ids(cls, v: list[uuid.UUID]) -> list[uuid.UUID]:
        return _reject_duplicates(v)


class BoardRead(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    name: str
    description: str | None
    position: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class BoardDetail(BoardRead):
    lists: list[TaskListRead] = []


# ── List ──────────────────────────────────────────────────────────────────────

class TaskListCreate(BaseModel):
    name: str = Field(min_length=1, max_length=100)
    board_id: uuid.UUID | None = None


class TaskListUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=100)


class TaskListReorder(BaseModel):
    board_id: uuid.UUID | None = None
    list_ids: list[uuid.UUID]

    @field_validator("list_ids")
    @classmethod
    def unique_ids(cls, v: list[uuid.UUID]) -> list[uuid.UUID]:
        return _reject_duplicates(v)


class TaskListRead(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    board_id: uuid.UUID | None
    name: str
    position: int
    created_at: datetime

    model_config = {"from_attributes": True}


# ── Label ─────────────────────────────────────────────────────────────────────

class LabelCreate(BaseModel):
    name: str = Field(min_length=1, max_length=50)
    color: str = Field(default="#3b82f6", pattern=HEX_COLOR_PATTERN)


class LabelUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=50)
    color: str | None = Field(default=None, pattern=HEX_COLOR_PATTERN)


class LabelRead(BaseModel):
    id: uuid.UUID
    project_id: uuid.UUID
    name: str
    color: str

    model_config = {"from_attributes": True}


BoardDetail.model_rebuild()
