"""
Label service. Labels are project-scoped and applied to tasks via TaskLabel.
"""
from __future__ import annotations

import uuid

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.crud.label import crud_label
from app.models.label import Label
from app.models.user import User
from app.schemas.board import LabelCreate, LabelRead, LabelUpdate
from app.services.activity_service import activity_service
from app.services.project_service import require_member
from app.services.realtime_service import realtime_gateway


class LabelService:

    async def list_labels(
        self, db: AsyncSession, *, project_id: uuid.UUID, current_user: User
    ) -> list[Label]:
        await require_member(db, project_id=project_id, user=current_user)
        return await crud_label.list_by_project(db, project_id=project_id)

    async def create_label(
        self,
        db: AsyncSession,
        *,
        project_id: uuid.UUID,
        label_in: LabelCreate,
        current_user: User,
    ) -> Label:
        await require_member(db, project_id=project_id, user=current_user)
        label = await crud_label.create_from_dict(
            db, obj_in={**label_in.model_dump(), "project_id": project_id}
        )
        await self._record(db, label, current_user, "LABEL_CREATED", "label-created")
        return label

    async def update_label(
        self,
        db: AsyncSession,
        *,
        label_id: uuid.UUID,
        label_in: LabelUpdate,
        current_user: User,
    ) -> Label:
        label = await self._get_for_member(db, label_id, current_user)
        updated = await crud_label.update(db, db_obj=label, obj_in=label_in)
        await self._record(db, updated, current_user, "LABEL_UPDATED", "label-updated")
        return updated

    async def delete_label(
        self, db: AsyncSession, *, label_id: uuid.UUID, current_user: User
    ) -> None:
        label = await self._get_for_member(db, label_id, current_user)
        payload = LabelRead.model_validate(label).model_dump(mode="json")
        await crud_label.remove(db, id=label_id)
        await activity_service.log(
            db,
            project_id=label.project_id,
            user_id=current_user.id,
            action="LABEL_DELETED",
            entity_type="label",
            entity_id=label_id,
            details={"name": label.name},
        )
        await realtime_gateway.broadcast_to_project(
            label.project_id,
            "label-updated",
            payload,
            user_id=current_user.id,
            user_name=current_user.display_name,
            type="label-deleted",
        )

    async def _get_for_member(
        self, db: AsyncSession, label_id: uuid.UUID, user: User
    ) -> Label:
        label = await crud_label.get(db, label_id)
        if label is None:
            raise NotFoundException("Label", str(label_id))
        await require_member(db, project_id=label.project_id, user=user)
        return label

    async def _record(
        self, db: AsyncSession, label: Label, user: User, action: str, kind: str
    ) -> None:
        await activity_service.log(
            db,
            project_id=label.project_id,
            user_id=user.id,
            action=action,
            entity_type="label",
            entity_id=label.id,
            details={"name": label.name, "color": label.color},
        )
        await realtime_gateway.broadcast_to_project(
            label.project_id,
            "label-updated",
            LabelRead.model_validate(label).model_dump(mode="json"),
            user_id=user.id,
            user_name=user.display_name,
            type=kind,
        )


label_service = LabelService()
