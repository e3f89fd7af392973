"""
Board routes.
/api/v1/boards/project/{project_id} for the collection, /api/v1/boards/{id}
for a single board.
"""
from __future__ import annotations

import uuid

from fastapi import APIRouter, status

from app.core.dependencies import CurrentUser, DBSession
from app.schemas.board import BoardCreate, BoardDetail, BoardRead, BoardReorder, BoardUpdate
from app.services.board_service import board_service

router = APIRouter(prefix="/boards", tags=["Boards"])


@router.get(
    "/project/{project_id}",
    response_model=list[BoardRead],
    summary="List a project's boards in order",
)
async def list_boards(
    project_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> list[BoardRead]:
    boards = await board_service.list_boards(
        db, project_id=project_id, current_user=current_user
    )
    return [BoardRead.model_validate(b) for b in boards]


@router.post(
    "/project/{project_id}",
    response_model=BoardRead,
    status_code=status.HTTP_201_CREATED,
    summary="Create a board at the end of the project",
)
async def create_board(
    project_id: uuid.UUID,
    board_in: BoardCreate,
    current_user: CurrentUser,
    db: DBSession,
) -> BoardRead:
    board = await board_service.create_board(
        db, project_id=project_id, board_in=board_in, current_user=current_user
    )
    return BoardRead.model_validate(board)


@router.put(
    "/project/{project_id}/reorder",
    response_model=list[BoardRead],
    summary="Reorder a project's boards",
)
async def reorder_boards(
    project_id: uuid.UUID,
    reorder_in: BoardReorder,
    current_user: CurrentUser,
    db: DBSession,
) -> list[BoardRead]:
    boards = await board_service.reorder_boards(
        db, project_id=project_id, reorder_in=reorder_in, current_user=current_user
    )
    return [BoardRead.model_validate(b) for b in boards]


@router.get(
    "/{board_id}",
    response_model=BoardDetail,
    summary="Get a board with its lists",
)
async def get_board(
    board_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> BoardDetail:
    board = await board_service.get_board(db, board_id=board_id, current_user=current_user)
    return BoardDetail.model_validate(board)


@router.put(
    "/{board_id}",
    response_model=BoardRead,
    summary="Update a board",
)
async def update_board(
    board_id: uuid.UUID,
    board_in: BoardUpdate,
    current_user: CurrentUser,
    db: DBSession,
) -> BoardRead:
    board = await board_service.update_board(
        db, board_id=board_id, board_in=board_in, current_user=current_user
    )
    return BoardRead.model_validate(board)


@router.delete(
    "/{board_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a board with its lists and tasks",
)
async def delete_board(
    board_id: uuid.UUID,
    current_user: CurrentUser,
    db: DBSession,
) -> None:
    await board_service.delete_board(db, board_id=board_id, current_user=current_user)
