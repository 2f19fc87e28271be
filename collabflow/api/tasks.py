"""Task CRUD endpoints with assignment notifications."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlmodel import col

from collabflow.api.deps import (
    AUTH_DEP,
    SESSION_DEP,
    get_board_or_404,
    get_project_or_404,
    get_task_or_404,
    get_user_or_404,
)
from collabflow.core.logging import get_logger
from collabflow.core.time import utcnow
from collabflow.db import crud
from collabflow.models.tasks import Task
from collabflow.schemas.common import MessageResponse
from collabflow.schemas.tasks import TaskCreate, TaskRead, TaskUpdate
from collabflow.services.access import require_project_access, require_project_owner
from collabflow.services.notifications import notify_task_assigned
from collabflow.services.summaries import board_summaries, user_summaries

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from collabflow.core.auth import AuthContext
    from collabflow.models.boards import Board
    from collabflow.models.projects import Project

router = APIRouter(prefix="/tasks", tags=["tasks"])
logger = get_logger(__name__)


async def _read_many(session: AsyncSession, tasks: list[Task]) -> list[TaskRead]:
    users = await user_summaries(
        session,
        [task.created_by_user_id for task in tasks]
        + [task.assigned_to_user_id for task in tasks],
    )
    boards = await board_summaries(session, [task.board_id for task in tasks])
    return [
        TaskRead(
            id=task.id,
            title=task.title,
            description=task.description,
            priority=task.priority,
            status=task.status,
            due_date=task.due_date,
            project_id=task.project_id,
            board_id=task.board_id,
            board=boards.get(task.board_id) if task.board_id else None,
            created_by_user_id=task.created_by_user_id,
            created_by=users.get(task.created_by_user_id),
            assigned_to_user_id=task.assigned_to_user_id,
            assigned_to=users.get(task.assigned_to_user_id) if task.assigned_to_user_id else None,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )
        for task in tasks
    ]


async def _read_one(session: AsyncSession, task: Task) -> TaskRead:
    return (await _read_many(session, [task]))[0]


def _require_board_in_project(board: Board, project: Project) -> None:
    if board.project_id != project.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Board does not belong to project",
        )


@router.post("", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    payload: TaskCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    """Create a task, notifying the assignee when it is someone else."""
    project = await get_project_or_404(session, payload.project_id)
    board = None
    if payload.board_id is not None:
        board = await get_board_or_404(session, payload.board_id)
    if payload.assigned_to is not None:
        await get_user_or_404(session, payload.assigned_to, detail="Assignee not found")
    await require_project_access(session, project=project, user=auth.user)
    if board is not None:
        _require_board_in_project(board, project)

    task = await crud.save(
        session,
        Task(
            title=payload.title,
            description=payload.description,
            priority=payload.priority,
            status=payload.status,
            due_date=payload.due_date,
            project_id=project.id,
            board_id=payload.board_id,
            created_by_user_id=auth.user.id,
            assigned_to_user_id=payload.assigned_to,
        ),
    )
    logger.info(
        "task.create",
        extra={"task_id": str(task.id), "project_id": str(project.id)},
    )
    response = await _read_one(session, task)
    await notify_task_assigned(
        session,
        task=task,
        caller_id=auth.user.id,
        previous_assignee_id=None,
    )
    return response


@router.get("/project/{project_id}", response_model=list[TaskRead])
async def list_project_tasks(
    project_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[TaskRead]:
    """List a project's tasks, newest first."""
    project = await get_project_or_404(session, project_id)
    await require_project_access(session, project=project, user=auth.user)
    tasks = await (
        Task.objects.filter_by(project_id=project.id)
        .order_by(col(Task.created_at).desc())
        .all(session)
    )
    return await _read_many(session, tasks)


@router.get("/board/{board_id}", response_model=list[TaskRead])
async def list_board_tasks(
    board_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[TaskRead]:
    """List a board's tasks, newest first."""
    board = await get_board_or_404(session, board_id)
    project = await get_project_or_404(session, board.project_id)
    await require_project_access(session, project=project, user=auth.user)
    tasks = await (
        Task.objects.filter_by(board_id=board.id)
        .order_by(col(Task.created_at).desc())
        .all(session)
    )
    return await _read_many(session, tasks)


@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    task = await get_task_or_404(session, task_id)
    project = await get_project_or_404(session, task.project_id)
    await require_project_access(session, project=project, user=auth.user)
    return await _read_one(session, task)


@router.put("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: UUID,
    payload: TaskUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> TaskRead:
    """Apply a partial update to a task.

    A new assignee who is neither the caller nor the previous assignee gets a
    `task_assigned` notification.
    """
    task = await get_task_or_404(session, task_id)
    project = await get_project_or_404(session, task.project_id)
    updates = payload.model_dump(exclude_unset=True)
    if "assigned_to" in updates:
        assignee_id = updates.pop("assigned_to")
        if assignee_id is not None:
            await get_user_or_404(session, assignee_id, detail="Assignee not found")
        updates["assigned_to_user_id"] = assignee_id
    await require_project_access(session, project=project, user=auth.user)

    previous_assignee_id = task.assigned_to_user_id
    updates["updated_at"] = utcnow()
    task = await crud.patch(session, task, updates)
    logger.info("task.update", extra={"task_id": str(task.id), "fields": sorted(updates)})
    response = await _read_one(session, task)
    if "assigned_to_user_id" in updates:
        await notify_task_assigned(
            session,
            task=task,
            caller_id=auth.user.id,
            previous_assignee_id=previous_assignee_id,
        )
    return response


@router.delete("/{task_id}", response_model=MessageResponse)
async def delete_task(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> MessageResponse:
    """Delete a task (project owner only)."""
    task = await get_task_or_404(session, task_id)
    project = await get_project_or_404(session, task.project_id)
    require_project_owner(project, user=auth.user, detail="Only project owner can delete tasks")
    await crud.delete(session, task)
    logger.info("task.delete", extra={"task_id": str(task_id)})
    return MessageResponse(message="Task deleted successfully")
