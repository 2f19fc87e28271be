"""Notification emitter for task assignment and comment side effects.

Notifications are written after the triggering mutation has been committed.
Emission is best effort: a failure is logged and rolled back on its own and
never undoes the task or comment that triggered it.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from collabflow.core.logging import get_logger
from collabflow.db import crud
from collabflow.models.notifications import COMMENT_ADDED, TASK_ASSIGNED, Notification

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from collabflow.models.comments import Comment
    from collabflow.models.tasks import Task

logger = get_logger(__name__)


def should_notify_assignment(
    *,
    assignee_id: UUID | None,
    caller_id: UUID,
    previous_assignee_id: UUID | None,
) -> bool:
    """Notify a new assignee unless they assigned themselves or nothing changed."""
    if assignee_id is None:
        return False
    return assignee_id != caller_id and assignee_id != previous_assignee_id


def should_notify_comment(*, assignee_id: UUID | None, author_id: UUID) -> bool:
    """Notify the task assignee about comments written by someone else."""
    return assignee_id is not None and assignee_id != author_id


async def emit_notification(
    session: AsyncSession,
    *,
    recipient_id: UUID,
    notification_type: str,
    message: str,
    related_task_id: UUID | None = None,
    related_project_id: UUID | None = None,
) -> Notification | None:
    """Persist one notification, returning `None` when emission fails."""
    try:
        notification = Notification(
            recipient_id=recipient_id,
            type=notification_type,
            message=message,
            related_task_id=related_task_id,
            related_project_id=related_project_id,
        )
        notification = await crud.save(session, notification)
    except Exception as exc:
        logger.warning(
            "notification.emit_failed",
            extra={
                "notification_type": notification_type,
                "recipient_id": str(recipient_id),
                "related_task_id": str(related_task_id) if related_task_id else None,
                "error": str(exc),
            },
        )
        await session.rollback()
        return None
    logger.info(
        "notification.emitted",
        extra={
            "notification_id": str(notification.id),
            "notification_type": notification_type,
            "recipient_id": str(recipient_id),
        },
    )
    return notification


async def notify_task_assigned(
    session: AsyncSession,
    *,
    task: Task,
    caller_id: UUID,
    previous_assignee_id: UUID | None,
) -> Notification | None:
    """Emit `task_assigned` when the task's assignee changed to someone else."""
    assignee_id = task.assigned_to_user_id
    if assignee_id is None or not should_notify_assignment(
        assignee_id=assignee_id,
        caller_id=caller_id,
        previous_assignee_id=previous_assignee_id,
    ):
        return None
    return await emit_notification(
        session,
        recipient_id=assignee_id,
        notification_type=TASK_ASSIGNED,
        message=f"You have been assigned to task: {task.title}",
        related_task_id=task.id,
        related_project_id=task.project_id,
    )


async def notify_comment_added(
    session: AsyncSession,
    *,
    task: Task,
    comment: Comment,
) -> Notification | None:
    """Emit `comment_added` for the task assignee when someone else comments."""
    assignee_id = task.assigned_to_user_id
    if assignee_id is None or not should_notify_comment(
        assignee_id=assignee_id,
        author_id=comment.author_id,
    ):
        return None
    return await emit_notification(
        session,
        recipient_id=assignee_id,
        notification_type=COMMENT_ADDED,
        message=f"New comment on task: {task.title}",
        related_task_id=task.id,
        related_project_id=task.project_id,
    )
