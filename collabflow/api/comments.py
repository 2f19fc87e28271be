"""Task comment endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlmodel import col

from collabflow.api.deps import (
    AUTH_DEP,
    SESSION_DEP,
    get_comment_or_404,
    get_project_or_404,
    get_task_or_404,
)
from collabflow.core.logging import get_logger
from collabflow.core.time import utcnow
from collabflow.db import crud
from collabflow.models.comments import Comment
from collabflow.schemas.comments import CommentCreate, CommentRead, CommentUpdate
from collabflow.schemas.common import MessageResponse
from collabflow.services.access import (
    can_delete_comment,
    can_modify_comment,
    require_project_access,
)
from collabflow.services.notifications import notify_comment_added
from collabflow.services.summaries import user_summaries

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from collabflow.core.auth import AuthContext

router = APIRouter(prefix="/comments", tags=["comments"])
logger = get_logger(__name__)


async def _read_many(session: AsyncSession, comments: list[Comment]) -> list[CommentRead]:
    users = await user_summaries(session, [comment.author_id for comment in comments])
    return [
        CommentRead(
            id=comment.id,
            content=comment.content,
            task_id=comment.task_id,
            author_id=comment.author_id,
            author=users.get(comment.author_id),
            created_at=comment.created_at,
            updated_at=comment.updated_at,
        )
        for comment in comments
    ]


async def _read_one(session: AsyncSession, comment: Comment) -> CommentRead:
    return (await _read_many(session, [comment]))[0]


@router.post("", response_model=CommentRead, status_code=status.HTTP_201_CREATED)
async def create_comment(
    payload: CommentCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CommentRead:
    """Comment on a task, notifying its assignee when they are not the author."""
    task = await get_task_or_404(session, payload.task_id)
    project = await get_project_or_404(session, task.project_id)
    await require_project_access(session, project=project, user=auth.user)
    comment = await crud.save(
        session,
        Comment(content=payload.content, task_id=task.id, author_id=auth.user.id),
    )
    logger.info(
        "comment.create",
        extra={"comment_id": str(comment.id), "task_id": str(task.id)},
    )
    response = await _read_one(session, comment)
    await notify_comment_added(session, task=task, comment=comment)
    return response


@router.get("/task/{task_id}", response_model=list[CommentRead])
async def list_task_comments(
    task_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[CommentRead]:
    """List a task's comments, newest first."""
    task = await get_task_or_404(session, task_id)
    project = await get_project_or_404(session, task.project_id)
    await require_project_access(session, project=project, user=auth.user)
    comments = await (
        Comment.objects.filter_by(task_id=task.id)
        .order_by(col(Comment.created_at).desc())
        .all(session)
    )
    return await _read_many(session, comments)


@router.get("/{comment_id}", response_model=CommentRead)
async def get_comment(
    comment_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CommentRead:
    comment = await get_comment_or_404(session, comment_id)
    task = await get_task_or_404(session, comment.task_id)
    project = await get_project_or_404(session, task.project_id)
    await require_project_access(session, project=project, user=auth.user)
    return await _read_one(session, comment)


@router.put("/{comment_id}", response_model=CommentRead)
async def update_comment(
    comment_id: UUID,
    payload: CommentUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CommentRead:
    """Edit a comment's content (author only)."""
    comment = await get_comment_or_404(session, comment_id)
    if not can_modify_comment(comment, auth.user.id):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only comment author can update it",
        )
    updates = payload.model_dump(exclude_unset=True)
    updates["updated_at"] = utcnow()
    comment = await crud.patch(session, comment, updates)
    logger.info("comment.update", extra={"comment_id": str(comment.id)})
    return await _read_one(session, comment)


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> MessageResponse:
    """Delete a comment (author or project owner)."""
    comment = await get_comment_or_404(session, comment_id)
    task = await get_task_or_404(session, comment.task_id)
    project = await get_project_or_404(session, task.project_id)
    if not can_delete_comment(comment, auth.user.id, project):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not authorized to delete this comment",
        )
    await crud.delete(session, comment)
    logger.info("comment.delete", extra={"comment_id": str(comment_id)})
    return MessageResponse(message="Comment deleted successfully")
