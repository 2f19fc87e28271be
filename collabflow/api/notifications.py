"""Recipient-scoped notification endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlmodel import col

from collabflow.api.deps import AUTH_DEP, SESSION_DEP, get_notification_or_404
from collabflow.core.config import settings
from collabflow.core.logging import get_logger
from collabflow.db import crud
from collabflow.models.notifications import Notification
from collabflow.schemas.common import CountResponse, MessageResponse
from collabflow.schemas.notifications import NotificationRead
from collabflow.services.access import NOT_AUTHORIZED
from collabflow.services.summaries import project_summaries, task_summaries

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from collabflow.core.auth import AuthContext
    from collabflow.models.users import User

router = APIRouter(prefix="/notifications", tags=["notifications"])
logger = get_logger(__name__)


async def _read_many(
    session: AsyncSession,
    notifications: list[Notification],
) -> list[NotificationRead]:
    tasks = await task_summaries(session, [item.related_task_id for item in notifications])
    projects = await project_summaries(
        session,
        [item.related_project_id for item in notifications],
    )
    return [
        NotificationRead(
            id=item.id,
            recipient_id=item.recipient_id,
            type=item.type,
            message=item.message,
            read=item.read,
            related_task_id=item.related_task_id,
            related_task=tasks.get(item.related_task_id) if item.related_task_id else None,
            related_project_id=item.related_project_id,
            related_project=(
                projects.get(item.related_project_id) if item.related_project_id else None
            ),
            created_at=item.created_at,
        )
        for item in notifications
    ]


async def _get_owned_notification(
    session: AsyncSession,
    notification_id: UUID,
    *,
    user: User,
) -> Notification:
    notification = await get_notification_or_404(session, notification_id)
    if notification.recipient_id != user.id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_AUTHORIZED)
    return notification


@router.get("", response_model=list[NotificationRead])
async def list_notifications(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[NotificationRead]:
    """List the caller's most recent notifications."""
    notifications = await (
        Notification.objects.filter_by(recipient_id=auth.user.id)
        .order_by(col(Notification.created_at).desc())
        .limit(settings.notification_list_limit)
        .all(session)
    )
    return await _read_many(session, notifications)


@router.get("/unread", response_model=list[NotificationRead])
async def list_unread_notifications(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[NotificationRead]:
    """List all of the caller's unread notifications, newest first."""
    notifications = await (
        Notification.objects.filter_by(recipient_id=auth.user.id, read=False)
        .order_by(col(Notification.created_at).desc())
        .all(session)
    )
    return await _read_many(session, notifications)


@router.get("/count", response_model=CountResponse)
async def count_unread_notifications(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> CountResponse:
    count = await Notification.objects.filter_by(recipient_id=auth.user.id, read=False).count(
        session,
    )
    return CountResponse(count=count)


@router.put("/read-all", response_model=MessageResponse)
async def mark_all_notifications_read(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> MessageResponse:
    updated = await crud.update_where(
        session,
        Notification,
        col(Notification.recipient_id) == auth.user.id,
        col(Notification.read).is_(False),
        updates={"read": True},
    )
    logger.info(
        "notification.read_all",
        extra={"user_id": str(auth.user.id), "count": updated},
    )
    return MessageResponse(message="All notifications marked as read")


@router.delete("", response_model=MessageResponse)
async def delete_all_notifications(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> MessageResponse:
    deleted = await crud.delete_where(
        session,
        Notification,
        col(Notification.recipient_id) == auth.user.id,
    )
    logger.info(
        "notification.delete_all",
        extra={"user_id": str(auth.user.id), "count": deleted},
    )
    return MessageResponse(message="All notifications deleted successfully")


@router.get("/{notification_id}", response_model=NotificationRead)
async def get_notification(
    notification_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> NotificationRead:
    notification = await _get_owned_notification(session, notification_id, user=auth.user)
    return (await _read_many(session, [notification]))[0]


@router.put("/{notification_id}/read", response_model=NotificationRead)
async def mark_notification_read(
    notification_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> NotificationRead:
    """Mark one of the caller's notifications as read."""
    notification = await _get_owned_notification(session, notification_id, user=auth.user)
    notification = await crud.patch(session, notification, {"read": True})
    return (await _read_many(session, [notification]))[0]


@router.delete("/{notification_id}", response_model=MessageResponse)
async def delete_notification(
    notification_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> MessageResponse:
    notification = await _get_owned_notification(session, notification_id, user=auth.user)
    await crud.delete(session, notification)
    logger.info("notification.delete", extra={"notification_id": str(notification_id)})
    return MessageResponse(message="Notification deleted successfully")
