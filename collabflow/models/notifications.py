"""Notification model written as a side effect of task and comment mutations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from collabflow.core.time import utcnow
from collabflow.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)
TASK_ASSIGNED = "task_assigned"
COMMENT_ADDED = "comment_added"


class Notification(QueryModel, table=True):
    """Per-recipient notification with optional task/project context."""

    __tablename__ = "notifications"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    recipient_id: UUID = Field(foreign_key="users.id", index=True)
    type: str = Field(index=True)
    message: str
    related_task_id: UUID | None = Field(default=None, index=True)
    related_project_id: UUID | None = Field(default=None, index=True)
    read: bool = Field(default=False, index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
