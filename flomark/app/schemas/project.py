"""
Project and membership Pydantic schemas.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from typing import Literal

from pydantic import BaseModel, EmailStr, Field

from app.schemas.user import UserReadPublic

MemberRole = Literal["OWNER", "ADMIN", "MEMBER"]
AssignableRole = Literal["ADMIN", "MEMBER"]


# ── Project ───────────────────────────────────────────────────────────────────

class ProjectCreate(BaseModel):
    name: str = Field(min_length=3, max_length=20)
    description: str | None = Field(default=None, max_length=1000)


class ProjectUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=3, max_length=20)
    description: str | None = Field(default=None, max_length=1000)


class ProjectRead(BaseModel):
    id: uuid.UUID
    name: str
    description: str | None
    owner_id: uuid.UUID
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


# ── Members ───────────────────────────────────────────────────────────────────

class ProjectMemberAdd(BaseModel):
    email: EmailStr
    role: AssignableRole = "MEMBER"


class ProjectMemberRoleUpdate(BaseModel):
    role: AssignableRole


class ProjectMemberRead(BaseModel):
    project_id: uuid.UUID
    user_id: uuid.UUID
    role: str
    joined_at: datetime
    user: UserReadPublic

    model_config = {"from_attributes": True}


# ── Invites ───────────────────────────────────────────────────────────────────

class ProjectInviteRead(BaseModel):
    project_id: uuid.UUID
    invite_code: str
