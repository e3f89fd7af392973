"""
In-memory data store for demo mode.
Records are plain Pydantic models kept in per-entity dicts; ids are prefixed
counters ("project-1", "task-3") that restart from 1 on every reset.
Membership rules match the database-backed services.
"""
from __future__ import annotations

import itertools
import logging
from collections import defaultdict
from collections.abc import Iterator
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, Field

from app.core.config import settings
from app.core.exceptions import (
    BadRequestException,
    ConflictException,
    ForbiddenException,
    NotFoundException,
)
from app.core.security import hash_password, verify_password
from app.crud.base import resequence
from app.services.ordering import apply_order, insert_at

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ── Records ───────────────────────────────────────────────────────────────────

class DemoUser(BaseModel):
    id: str
    email: str
    username: str
    full_name: str | None = None
    hashed_password: str
    role: str = "user"
    avatar_url: str | None = None
    created_at: datetime = Field(default_factory=_now)

    @property
    def display_name(self) -> str:
        return self.full_name or self.username


class DemoProject(BaseModel):
    id: str
    name: str
    description: str | None = None
    owner_id: str
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


class DemoMember(BaseModel):
    project_id: str
    user_id: str
    role: str = "MEMBER"
    joined_at: datetime = Field(default_factory=_now)

    @property
    def can_manage(self) -> bool:
        return self.role in ("OWNER", "ADMIN")


class DemoList(BaseModel):
    id: str
    project_id: str
    board_id: str | None = None
    name: str
    position: int = 0
    created_at: datetime = Field(default_factory=_now)


class DemoLabel(BaseModel):
    id: str
    project_id: str
    name: str
    color: str


class DemoSubTask(BaseModel):
    id: str
    task_id: str
    name: str
    is_completed: bool = False
    position: int = 0
    created_at: datetime = Field(default_factory=_now)


class DemoTask(BaseModel):
    id: str
    project_id: str
    list_id: str
    name: str
    description: str | None = None
    due_date: datetime | None = None
    position: int = 0
    is_completed: bool = False
    created_by_id: str | None = None
    member_ids: list[str] = []
    label_ids: list[str] = []
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)


# ── Read views ────────────────────────────────────────────────────────────────

class DemoUserPublic(BaseModel):
    id: str
    username: str
    full_name: str | None
    avatar_url: str | None

    model_config = {"from_attributes": True}


class DemoUserRead(DemoUserPublic):
    email: str
    role: str
    created_at: datetime


class DemoMemberRead(BaseModel):
    project_id: str
    user_id: str
    role: str
    joined_at: datetime
    user: DemoUserPublic


class DemoTaskRead(BaseModel):
    id: str
    project_id: str
    list_id: str
    name: str
    description: str | None
    due_date: datetime | None
    position: int
    is_completed: bool
    created_by_id: str | None
    created_at: datetime
    updated_at: datetime
    members: list[DemoUserPublic] = []
    labels: list[DemoLabel] = []
    subtasks: list[DemoSubTask] = []


class DemoListWithTasks(DemoList):
    tasks: list[DemoTaskRead] = []


class DemoProjectData(BaseModel):
    project: DemoProject
    boards: list[Any] = []
    lists: list[DemoListWithTasks]
    labels: list[DemoLabel]
    members: list[DemoMemberRead]


# ── Seed content ──────────────────────────────────────────────────────────────

_SEED_PROJECTS: list[dict[str, Any]] = [
    {
        "name": "Marketing 2024",
        "description": "Launch our new product marketing campaign across all channels",
        "lists": ["To Do", "In Progress", "Review", "Done"],
        "labels": [
            ("High Priority", "#ef4444"),
            ("Social Media", "#3b82f6"),
            ("Content", "#10b981"),
            ("Analytics", "#f59e0b"),
        ],
        "tasks": [
            {
                "name": "Welcome to the Flomark demo!",
                "description": (
                    "This is a demo environment with two sample projects. Try "
                    "creating tasks, moving them around and adding subtasks.\n\n"
                    "Data resets every 20-30 minutes."
                ),
                "list": 0,
                "label": 0,
            },
            {
                "name": "Plan Q4 social media strategy",
                "description": (
                    "Content calendar, posting schedule and engagement tactics "
                    "for every platform."
                ),
                "list": 0,
                "label": 1,
                "due_in_days": 7,
                "subtasks": [
                    ("Research competitor social media presence", True),
                    ("Define content pillars and themes", True),
                    ("Create monthly posting calendar", False),
                    ("Schedule content in advance", False),
                ],
            },
            {
                "name": "Design campaign graphics",
                "description": "Social posts, email banners and landing page graphics.",
                "list": 1,
                "label": 2,
                "due_in_days": 3,
                "subtasks": [
                    ("Create Instagram post templates", False),
                    ("Design email header banner", False),
                    ("Develop brand style guide", False),
                ],
            },
            {
                "name": "Write product launch blog post",
                "description": "Announce the new product features and benefits.",
                "list": 1,
                "label": 2,
            },
            {
                "name": "Set up analytics tracking",
                "description": "Configure campaign tracking and conversion goals.",
                "list": 3,
                "label": 3,
                "completed": True,
            },
        ],
    },
    {
        "name": "Website Redesign",
        "description": "Complete redesign of our company website with modern UI/UX",
        "lists": ["Backlog", "Design", "Development", "Completed"],
        "labels": [
            ("UI", "#8b5cf6"),
            ("UX", "#ec4899"),
            ("Frontend", "#06b6d4"),
            ("Backend", "#84cc16"),
        ],
        "tasks": [
            {
                "name": "Research modern design trends",
                "description": "Competitor sites, layout trends and accessibility practice.",
                "list": 0,
                "label": 0,
            },
            {
                "name": "Create high-fidelity wireframes",
                "description": "Homepage, about, services and contact pages.",
                "list": 1,
                "label": 1,
                "due_in_days": 5,
                "subtasks": [
                    ("Homepage wireframe", True),
                    ("About page wireframe", True),
                    ("Services page wireframe", False),
                    ("Contact page wireframe", False),
                ],
            },
            {
                "name": "Build responsive navigation",
                "description": "Mobile-first navigation with an accessible hamburger menu.",
                "list": 2,
                "label": 2,
                "subtasks": [
                    ("Desktop navigation menu", True),
                    ("Mobile hamburger menu", False),
                    ("Smooth scroll animations", False),
                ],
            },
            {
                "name": "Implement dark mode toggle",
                "description": "Theme switcher with persisted preference.",
                "list": 2,
                "label": 2,
            },
            {
                "name": "Set up contact form API",
                "description": "Contact form submissions and newsletter signup endpoints.",
                "list": 2,
                "label": 3,
            },
        ],
    },
]


class DemoStore:
    """Process-local demo data. Call reset() before first use."""

    def __init__(self) -> None:
        self.users: dict[str, DemoUser] = {}
        self.projects: dict[str, DemoProject] = {}
        self.members: list[DemoMember] = []
        self.lists: dict[str, DemoList] = {}
        self.labels: dict[str, DemoLabel] = {}
        self.tasks: dict[str, DemoTask] = {}
        self.subtasks: dict[str, DemoSubTask] = {}
        self._counters: dict[str, Iterator[int]] = defaultdict(lambda: itertools.count(1))
        self.last_reset_at: datetime | None = None
        self._password_hash: str | None = None

    # ── Lifecycle ─────────────────────────────────────────────────────────────

    def reset(self) -> None:
        """Drop everything and reseed the demo user and sample projects."""
        self.users.clear()
        self.projects.clear()
        self.members.clear()
        self.lists.clear()
        self.labels.clear()
        self.tasks.clear()
        self.subtasks.clear()
        self._counters.clear()

        # bcrypt is slow; the password never changes between resets
        if self._password_hash is None or not verify_password(
            settings.DEMO_PASSWORD, self._password_hash
        ):
            self._password_hash = hash_password(settings.DEMO_PASSWORD)

        user = DemoUser(
            id=self._next_id("user"),
            email=settings.DEMO_EMAIL,
            username="demo",
            full_name="Demo User",
            hashed_password=self._password_hash,
        )
        self.users[user.id] = user

        for spec in _SEED_PROJECTS:
            self._seed_project(user, spec)

        self.last_reset_at = _now()
        logger.info(
            "Demo data seeded: %d projects, %d tasks, %d subtasks",
            len(self.projects),
            len(self.tasks),
            len(self.subtasks),
        )

    def _seed_project(self, owner: DemoUser, spec: dict[str, Any]) -> None:
        project = self.create_project(
            user_id=owner.id, name=spec["name"], description=spec["description"]
        )
        lists = [
            self.create_list(project.id, user_id=owner.id, name=name)
            for name in spec["lists"]
        ]
        labels = [
            self.create_label(project.id, user_id=owner.id, name=name, color=color)
            for name, color in spec["labels"]
        ]
        for task_spec in spec["tasks"]:
            due_in = task_spec.get("due_in_days")
            task = self.create_task(
                lists[task_spec["list"]].id,
                user_id=owner.id,
                name=task_spec["name"],
                description=task_spec["description"],
                due_date=_now() + timedelta(days=due_in) if due_in else None,
            )
            task.label_ids.append(labels[task_spec["label"]].id)
            task.is_completed = task_spec.get("completed", False)
            for name, done in task_spec.get("subtasks", []):
                subtask = self.add_subtask(task.id, user_id=owner.id, name=name)
                subtask.is_completed = done

    def _next_id(self, kind: str) -> str:
        return f"{kind}-{next(self._counters[kind])}"

    # ── Users ─────────────────────────────────────────────────────────────────

    def authenticate(self, email: str, password: str) -> DemoUser | None:
        for user in self.users.values():
            if user.email.lower() == email.lower():
                if verify_password(password, user.hashed_password):
                    return user
                return None
        return None

    def get_user(self, user_id: str) -> DemoUser | None:
        return self.users.get(user_id)

    # ── Membership ────────────────────────────────────────────────────────────

    def is_member(self, project_id: str, user_id: str) -> bool:
        return self._member(project_id, user_id) is not None

    def _member(self, project_id: str, user_id: str) -> DemoMember | None:
        for member in self.members:
            if member.project_id == project_id and member.user_id == user_id:
                return member
        return None

    def require_member(self, project_id: str, user_id: str) -> tuple[DemoProject, DemoMember]:
        project = self.projects.get(project_id)
        if project is None:
            raise NotFoundException("Project", project_id)
        member = self._member(project_id, user_id)
        if member is None:
            raise ForbiddenException("You are not a member of this project")
        return project, member

    def require_manager(self, project_id: str, user_id: str) -> tuple[DemoProject, DemoMember]:
        project, member = self.require_member(project_id, user_id)
        if not member.can_manage:
            raise ForbiddenException("Only the project owner or admins can do this")
        return project, member

    def list_members(self, project_id: str, *, user_id: str) -> list[DemoMemberRead]:
        self.require_member(project_id, user_id)
        return [
            DemoMemberRead(
                **member.model_dump(),
                user=DemoUserPublic.model_validate(self.users[member.user_id]),
            )
            for member in self.members
            if member.project_id == project_id and member.user_id in self.users
        ]

    # ── Projects ──────────────────────────────────────────────────────────────

    def list_projects(self, *, user_id: str) -> list[DemoProject]:
        ids = {m.project_id for m in self.members if m.user_id == user_id}
        projects = [p for p in self.projects.values() if p.id in ids]
        return sorted(projects, key=lambda p: p.created_at, reverse=True)

    def get_project(self, project_id: str, *, user_id: str) -> DemoProject:
        project, _ = self.require_member(project_id, user_id)
        return project

    def create_project(
        self, *, user_id: str, name: str, description: str | None = None
    ) -> DemoProject:
        owned = sum(1 for p in self.projects.values() if p.owner_id == user_id)
        if owned >= settings.MAX_OWNED_PROJECTS:
            raise BadRequestException(
                f"You can own at most {settings.MAX_OWNED_PROJECTS} projects",
                error_code="PROJECT_LIMIT_REACHED",
            )
        project = DemoProject(
            id=self._next_id("project"),
            name=name,
            description=description,
            owner_id=user_id,
        )
        self.projects[project.id] = project
        self.members.append(DemoMember(project_id=project.id, user_id=user_id, role="OWNER"))
        return project

    def update_project(
        self, project_id: str, *, user_id: str, changes: dict[str, Any]
    ) -> DemoProject:
        project, _ = self.require_manager(project_id, user_id)
        for field, value in changes.items():
            setattr(project, field, value)
        project.updated_at = _now()
        return project

    def delete_project(self, project_id: str, *, user_id: str) -> None:
        _, member = self.require_member(project_id, user_id)
        if member.role != "OWNER":
            raise ForbiddenException("Only the project owner can delete the project")
        task_ids = {t.id for t in self.tasks.values() if t.project_id == project_id}
        self.subtasks = {k: s for k, s in self.subtasks.items() if s.task_id not in task_ids}
        self.tasks = {k: t for k, t in self.tasks.items() if t.project_id != project_id}
        self.lists = {k: lst for k, lst in self.lists.items() if lst.project_id != project_id}
        self.labels = {k: lb for k, lb in self.labels.items() if lb.project_id != project_id}
        self.members = [m for m in self.members if m.project_id != project_id]
        del self.projects[project_id]

    def project_data(self, project_id: str, *, user_id: str) -> DemoProjectData:
        project, _ = self.require_member(project_id, user_id)
        return DemoProjectData(
            project=project,
            lists=[
                DemoListWithTasks(
                    **lst.model_dump(),
                    tasks=[self.task_view(t) for t in self._tasks_in(lst.id)],
                )
                for lst in self._lists_in(project_id)
            ],
            labels=self._labels_in(project_id),
            members=self.list_members(project_id, user_id=user_id),
        )

    # ── Lists ─────────────────────────────────────────────────────────────────

    def _lists_in(self, project_id: str) -> list[DemoList]:
        lists = [lst for lst in self.lists.values() if lst.project_id == project_id]
        return sorted(lists, key=lambda lst: lst.position)

    def _get_list(self, list_id: str, user_id: str) -> DemoList:
        task_list = self.lists.get(list_id)
        if task_list is None:
            raise NotFoundException("List", list_id)
        self.require_member(task_list.project_id, user_id)
        return task_list

    def get_list(self, list_id: str, *, user_id: str) -> DemoList:
        return self._get_list(list_id, user_id)

    def list_lists(self, project_id: str, *, user_id: str) -> list[DemoList]:
        self.require_member(project_id, user_id)
        return self._lists_in(project_id)

    def create_list(self, project_id: str, *, user_id: str, name: str) -> DemoList:
        self.require_member(project_id, user_id)
        task_list = DemoList(
            id=self._next_id("list"),
            project_id=project_id,
            name=name,
            position=len(self._lists_in(project_id)),
        )
        self.lists[task_list.id] = task_list
        return task_list

    def update_list(self, list_id: str, *, user_id: str, name: str) -> DemoList:
        task_list = self._get_list(list_id, user_id)
        task_list.name = name
        return task_list

    def delete_list(self, list_id: str, *, user_id: str) -> DemoList:
        task_list = self._get_list(list_id, user_id)
        for task in self._tasks_in(list_id):
            self._drop_task(task.id)
        del self.lists[list_id]
        resequence(self._lists_in(task_list.project_id))
        return task_list

    def reorder_lists(
        self, project_id: str, *, user_id: str, list_ids: list[str]
    ) -> list[DemoList]:
        self.require_member(project_id, user_id)
        return apply_order(self._lists_in(project_id), list_ids, "list")

    # ── Labels ────────────────────────────────────────────────────────────────

    def _labels_in(self, project_id: str) -> list[DemoLabel]:
        return [lb for lb in self.labels.values() if lb.project_id == project_id]

    def _get_label(self, label_id: str, user_id: str) -> DemoLabel:
        label = self.labels.get(label_id)
        if label is None:
            raise NotFoundException("Label", label_id)
        self.require_member(label.project_id, user_id)
        return label

    def list_labels(self, project_id: str, *, user_id: str) -> list[DemoLabel]:
        self.require_member(project_id, user_id)
        return self._labels_in(project_id)

    def create_label(
        self, project_id: str, *, user_id: str, name: str, color: str
    ) -> DemoLabel:
        self.require_member(project_id, user_id)
        label = DemoLabel(
            id=self._next_id("label"), project_id=project_id, name=name, color=color
        )
        self.labels[label.id] = label
        return label

    def update_label(
        self, label_id: str, *, user_id: str, changes: dict[str, Any]
    ) -> DemoLabel:
        label = self._get_label(label_id, user_id)
        for field, value in changes.items():
            setattr(label, field, value)
        return label

    def delete_label(self, label_id: str, *, user_id: str) -> DemoLabel:
        label = self._get_label(label_id, user_id)
        for task in self.tasks.values():
            if label_id in task.label_ids:
                task.label_ids.remove(label_id)
        del self.labels[label_id]
        return label

    # ── Tasks ─────────────────────────────────────────────────────────────────

    def _tasks_in(self, list_id: str) -> list[DemoTask]:
        tasks = [t for t in self.tasks.values() if t.list_id == list_id]
        return sorted(tasks, key=lambda t: t.position)

    def _subtasks_of(self, task_id: str) -> list[DemoSubTask]:
        subtasks = [s for s in self.subtasks.values() if s.task_id == task_id]
        return sorted(subtasks, key=lambda s: s.position)

    def _get_task(self, task_id: str, user_id: str) -> DemoTask:
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFoundException("Task", task_id)
        self.require_member(task.project_id, user_id)
        return task

    def _drop_task(self, task_id: str) -> None:
        self.subtasks = {k: s for k, s in self.subtasks.items() if s.task_id != task_id}
        del self.tasks[task_id]

    def task_view(self, task: DemoTask) -> DemoTaskRead:
        return DemoTaskRead(
            **task.model_dump(exclude={"member_ids", "label_ids"}),
            members=[
                DemoUserPublic.model_validate(self.users[uid])
                for uid in task.member_ids
                if uid in self.users
            ],
            labels=[self.labels[lid] for lid in task.label_ids if lid in self.labels],
            subtasks=self._subtasks_of(task.id),
        )

    def list_tasks(self, list_id: str, *, user_id: str) -> list[DemoTask]:
        self._get_list(list_id, user_id)
        return self._tasks_in(list_id)

    def get_task(self, task_id: str, *, user_id: str) -> DemoTask:
        return self._get_task(task_id, user_id)

    def create_task(
        self,
        list_id: str,
        *,
        user_id: str,
        name: str,
        description: str | None = None,
        due_date: datetime | None = None,
    ) -> DemoTask:
        task_list = self._get_list(list_id, user_id)
        task = DemoTask(
            id=self._next_id("task"),
            project_id=task_list.project_id,
            list_id=list_id,
            name=name,
            description=description,
            due_date=due_date,
            position=len(self._tasks_in(list_id)),
            created_by_id=user_id,
        )
        self.tasks[task.id] = task
        return task

    def update_task(
        self, task_id: str, *, user_id: str, changes: dict[str, Any]
    ) -> DemoTask:
        task = self._get_task(task_id, user_id)
        for field, value in changes.items():
            setattr(task, field, value)
        task.updated_at = _now()
        return task

    def delete_task(self, task_id: str, *, user_id: str) -> DemoTask:
        task = self._get_task(task_id, user_id)
        self._drop_task(task_id)
        resequence(self._tasks_in(task.list_id))
        return task

    def move_task(
        self, task_id: str, *, user_id: str, list_id: str, position: int | None
    ) -> tuple[DemoTask, str]:
        """Move a task; returns the task and the id of the list it left."""
        task = self._get_task(task_id, user_id)
        target = self._get_list(list_id, user_id)
        if target.project_id != task.project_id:
            raise BadRequestException(
                "Tasks cannot be moved between projects", error_code="CROSS_PROJECT_MOVE"
            )
        source_id = task.list_id
        resequence([t for t in self._tasks_in(source_id) if t.id != task.id])
        destination = [t for t in self._tasks_in(list_id) if t.id != task.id]
        task.list_id = list_id
        insert_at(destination, task, position)
        task.updated_at = _now()
        return task, source_id

    def reorder_tasks(
        self, list_id: str, *, user_id: str, task_ids: list[str]
    ) -> list[DemoTask]:
        self._get_list(list_id, user_id)
        return apply_order(self._tasks_in(list_id), task_ids, "task")

    # ── Task members and labels ───────────────────────────────────────────────

    def add_task_member(self, task_id: str, *, user_id: str, member_id: str) -> DemoTask:
        task = self._get_task(task_id, user_id)
        if not self.is_member(task.project_id, member_id):
            raise BadRequestException("User is not a member of this project")
        if member_id in task.member_ids:
            raise ConflictException("User is already assigned to this task")
        task.member_ids.append(member_id)
        return task

    def remove_task_member(self, task_id: str, *, user_id: str, member_id: str) -> DemoTask:
        task = self._get_task(task_id, user_id)
        if member_id not in task.member_ids:
            raise NotFoundException("Task assignment")
        task.member_ids.remove(member_id)
        return task

    def add_task_label(self, task_id: str, *, user_id: str, label_id: str) -> DemoTask:
        task = self._get_task(task_id, user_id)
        label = self.labels.get(label_id)
        if label is None or label.project_id != task.project_id:
            raise BadRequestException("Label does not belong to this project")
        if label_id in task.label_ids:
            raise ConflictException("Label is already applied to this task")
        task.label_ids.append(label_id)
        return task

    def remove_task_label(self, task_id: str, *, user_id: str, label_id: str) -> DemoTask:
        task = self._get_task(task_id, user_id)
        if label_id not in task.label_ids:
            raise NotFoundException("Task label")
        task.label_ids.remove(label_id)
        return task

    # ── Subtasks ──────────────────────────────────────────────────────────────

    def _get_subtask(self, subtask_id: str, user_id: str) -> tuple[DemoSubTask, DemoTask]:
        subtask = self.subtasks.get(subtask_id)
        if subtask is None:
            raise NotFoundException("Subtask", subtask_id)
        return subtask, self._get_task(subtask.task_id, user_id)

    def add_subtask(self, task_id: str, *, user_id: str, name: str) -> DemoSubTask:
        self._get_task(task_id, user_id)
        subtask = DemoSubTask(
            id=self._next_id("subtask"),
            task_id=task_id,
            name=name,
            position=len(self._subtasks_of(task_id)),
        )
        self.subtasks[subtask.id] = subtask
        return subtask

    def update_subtask(
        self, subtask_id: str, *, user_id: str, changes: dict[str, Any]
    ) -> tuple[DemoSubTask, DemoTask]:
        subtask, task = self._get_subtask(subtask_id, user_id)
        for field, value in changes.items():
            setattr(subtask, field, value)
        return subtask, task

    def delete_subtask(self, subtask_id: str, *, user_id: str) -> DemoTask:
        _, task = self._get_subtask(subtask_id, user_id)
        del self.subtasks[subtask_id]
        resequence(self._subtasks_of(task.id))
        return task

    # ── Stats ─────────────────────────────────────────────────────────────────

    def stats(self) -> dict[str, int]:
        return {
            "users": len(self.users),
            "projects": len(self.projects),
            "lists": len(self.lists),
            "tasks": len(self.tasks),
            "labels": len(self.labels),
            "members": len(self.members),
            "subtasks": len(self.subtasks),
        }


demo_store = DemoStore()
