"""Shared FastAPI dependencies and load-or-404 helpers for API routers.

Routers resolve every referenced entity through these helpers before running
any authorization check, so a missing entity is reported as 404 even when the
caller would not be allowed to see it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import Depends, HTTPException, status

from collabflow.core.auth import get_auth_context
from collabflow.db.session import get_session
from collabflow.models.boards import Board
from collabflow.models.comments import Comment
from collabflow.models.notifications import Notification
from collabflow.models.projects import Project
from collabflow.models.tasks import Task
from collabflow.models.users import User

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

AUTH_DEP = Depends(get_auth_context)
SESSION_DEP = Depends(get_session)


def _not_found(detail: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


async def get_project_or_404(session: AsyncSession, project_id: UUID) -> Project:
    project = await Project.objects.by_id(project_id).first(session)
    if project is None:
        raise _not_found("Project not found")
    return project


async def get_board_or_404(session: AsyncSession, board_id: UUID) -> Board:
    board = await Board.objects.by_id(board_id).first(session)
    if board is None:
        raise _not_found("Board not found")
    return board


async def get_task_or_404(session: AsyncSession, task_id: UUID) -> Task:
    task = await Task.objects.by_id(task_id).first(session)
    if task is None:
        raise _not_found("Task not found")
    return task


async def get_comment_or_404(session: AsyncSession, comment_id: UUID) -> Comment:
    comment = await Comment.objects.by_id(comment_id).first(session)
    if comment is None:
        raise _not_found("Comment not found")
    return comment


async def get_notification_or_404(session: AsyncSession, notification_id: UUID) -> Notification:
    notification = await Notification.objects.by_id(notification_id).first(session)
    if notification is None:
        raise _not_found("Notification not found")
    return notification


async def get_user_or_404(
    session: AsyncSession,
    user_id: UUID,
    *,
    detail: str = "User not found",
) -> User:
    user = await User.objects.by_id(user_id).first(session)
    if user is None:
        raise _not_found(detail)
    return user
