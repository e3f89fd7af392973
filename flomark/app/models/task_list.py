"""
TaskList ORM model (a Kanban column).
Lists always belong to a project and optionally to one of its boards;
position orders them within that (project, board) scope.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class TaskList(Base):
    __tablename__ = "lists"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    project_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("projects.id", ondelete="CASCADE"),
        nullable=False,
    )
    board_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("boards.id", ondelete="CASCADE"),
        nullable=True,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    project: Mapped["Project"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Project",
        back_populates="lists",
    )
    board: Mapped["Board | None"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Board",
        back_populates="lists",
    )
    tasks: Mapped[list["Task"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Task",
        back_populates="task_list",
        cascade="all, delete-orphan",
        order_by="Task.position",
    )

    __table_args__ = (
        Index("ix_lists_project_id", "project_id"),
        Index("ix_lists_board_position", "board_id", "position"),
    )

    def __repr__(self) -> str:
        return f"<TaskList id={self.id} name={self.name!r} position={self.position}>"
