"""Schemas for notification read payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class ProjectSummary(SQLModel):
    """Display fields used when a project reference is expanded."""

    id: UUID
    name: str


class TaskSummary(SQLModel):
    """Display fields used when a task reference is expanded."""

    id: UUID
    title: str


class NotificationRead(SQLModel):
    """Notification payload; dangling references expand to null."""

    id: UUID
    recipient_id: UUID
    type: str
    message: str
    read: bool
    related_task_id: UUID | None = None
    related_task: TaskSummary | None = None
    related_project_id: UUID | None = None
    related_project: ProjectSummary | None = None
    created_at: datetime
