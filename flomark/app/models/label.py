"""
Label ORM model.
Labels are defined per project and applied to tasks through task_labels.
"""
from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


class Label(Base):
    __tablename__ = "labels"

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
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    color: Mapped[str] = mapped_column(String(7), nullable=False, default="#3b82f6")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    # ── Relationships ─────────────────────────────────────────────────────────
    project: Mapped["Project"] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "Project",
        back_populates="labels",
    )
    task_links: Mapped[list["TaskLabel"]] = relationship(  # type: ignore[name-defined]  # noqa: F821
        "TaskLabel",
        back_populates="label",
        cascade="all, delete-orphan",
    )

    __table_args__ = (Index("ix_labels_project_id", "project_id"),)

    def __repr__(self) -> str:
        return f"<Label id={self.id} name={self.name!r} color={self.color}>"
