"""
Aggregated board payload returned by GET /projects/{id}/data.
One round-trip gives the client everything needed to render a project.
"""
from __future__ import annotations

from pydantic import BaseModel

from app.schemas.board import BoardRead, LabelRead, TaskListRead
from app.schemas.project import ProjectMemberRead, ProjectRead
from app.schemas.task import TaskRead


class TaskListWithTasks(TaskListRead):
    tasks: list[TaskRead] = []


class ProjectData(BaseModel):
    project: ProjectRead
    boards: list[BoardRead]
    lists: list[TaskListWithTasks]
    labels: list[LabelRead]
    members: list[ProjectMemberRead]
