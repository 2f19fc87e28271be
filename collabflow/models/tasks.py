"""Task model representing project work items."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from collabflow.core.time import utcnow
from collabflow.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)
TASK_STATUSES = frozenset({"todo", "in_progress", "review", "done"})
TASK_PRIORITIES = frozenset({"low", "medium", "high", "urgent"})


class Task(QueryModel, table=True):
    """Project-scoped task with optional board placement and assignee."""

    __tablename__ = "tasks"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    project_id: UUID = Field(index=True)
    board_id: UUID | None = Field(default=None, index=True)

    title: str
    description: str | None = None
    status: str = Field(default="todo", index=True)
    priority: str = Field(default="medium", index=True)
    due_date: datetime | None = None

    created_by_user_id: UUID = Field(foreign_key="users.id", index=True)
    assigned_to_user_id: UUID | None = Field(
        default=None,
        foreign_key="users.id",
        index=True,
    )

    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
