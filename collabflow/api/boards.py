"""Board CRUD endpoints scoped to a project."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, status
from sqlmodel import col

from collabflow.api.deps import AUTH_DEP, SESSION_DEP, get_board_or_404, get_project_or_404
from collabflow.core.logging import get_logger
from collabflow.core.time import utcnow
from collabflow.db import crud
from collabflow.models.boards import Board
from collabflow.schemas.boards import BoardCreate, BoardRead, BoardUpdate
from collabflow.schemas.common import MessageResponse
from collabflow.services.access import require_project_access, require_project_owner
from collabflow.services.summaries import user_summaries

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from collabflow.core.auth import AuthContext

router = APIRouter(prefix="/boards", tags=["boards"])
logger = get_logger(__name__)


async def _read_many(session: AsyncSession, boards: list[Board]) -> list[BoardRead]:
    users = await user_summaries(session, [board.created_by_user_id for board in boards])
    return [
        BoardRead(
            id=board.id,
            name=board.name,
            description=board.description,
            project_id=board.project_id,
            created_by_user_id=board.created_by_user_id,
            created_by=users.get(board.created_by_user_id) if board.created_by_user_id else None,
            created_at=board.created_at,
            updated_at=board.updated_at,
        )
        for board in boards
    ]


async def _read_one(session: AsyncSession, board: Board) -> BoardRead:
    return (await _read_many(session, [board]))[0]


@router.post("", response_model=BoardRead, status_code=status.HTTP_201_CREATED)
async def create_board(
    payload: BoardCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> BoardRead:
    """Create a board in a project the caller can access."""
    project = await get_project_or_404(session, payload.project_id)
    await require_project_access(session, project=project, user=auth.user)
    board = await crud.save(
        session,
        Board(
            name=payload.name,
            description=payload.description,
            project_id=project.id,
            created_by_user_id=auth.user.id,
        ),
    )
    logger.info(
        "board.create",
        extra={"board_id": str(board.id), "project_id": str(project.id)},
    )
    return await _read_one(session, board)


@router.get("/project/{project_id}", response_model=list[BoardRead])
async def list_project_boards(
    project_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[BoardRead]:
    """List a project's boards, newest first."""
    project = await get_project_or_404(session, project_id)
    await require_project_access(session, project=project, user=auth.user)
    boards = await (
        Board.objects.filter_by(project_id=project.id)
        .order_by(col(Board.created_at).desc())
        .all(session)
    )
    return await _read_many(session, boards)


@router.get("/{board_id}", response_model=BoardRead)
async def get_board(
    board_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> BoardRead:
    board = await get_board_or_404(session, board_id)
    project = await get_project_or_404(session, board.project_id)
    await require_project_access(session, project=project, user=auth.user)
    return await _read_one(session, board)


@router.put("/{board_id}", response_model=BoardRead)
async def update_board(
    board_id: UUID,
    payload: BoardUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> BoardRead:
    """Apply a partial update to a board's name or description."""
    board = await get_board_or_404(session, board_id)
    project = await get_project_or_404(session, board.project_id)
    await require_project_access(session, project=project, user=auth.user)
    updates = payload.model_dump(exclude_unset=True)
    updates["updated_at"] = utcnow()
    board = await crud.patch(session, board, updates)
    logger.info("board.update", extra={"board_id": str(board.id), "fields": sorted(updates)})
    return await _read_one(session, board)


@router.delete("/{board_id}", response_model=MessageResponse)
async def delete_board(
    board_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> MessageResponse:
    """Delete a board (project owner only); its tasks keep a dangling board id."""
    board = await get_board_or_404(session, board_id)
    project = await get_project_or_404(session, board.project_id)
    require_project_owner(project, user=auth.user, detail="Only project owner can delete boards")
    await crud.delete(session, board)
    logger.info("board.delete", extra={"board_id": str(board_id)})
    return MessageResponse(message="Board deleted successfully")
