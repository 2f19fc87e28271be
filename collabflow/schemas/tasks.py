"""Schemas for task create/update/read API operations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import field_validator
from sqlmodel import SQLModel

from collabflow.models.tasks import TASK_PRIORITIES, TASK_STATUSES
from collabflow.schemas.boards import BoardSummary
from collabflow.schemas.common import require_non_blank
from collabflow.schemas.users import UserSummary

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


def _validate_choice(value: str | None, *, field_name: str, choices: frozenset[str]) -> str:
    if value not in choices:
        raise ValueError(f"{field_name} must be one of: {', '.join(sorted(choices))}")
    return value


class TaskCreate(SQLModel):
    """Payload for creating a task in a project, optionally on a board."""

    title: str
    description: str | None = None
    priority: str = "medium"
    status: str = "todo"
    due_date: datetime | None = None
    project_id: UUID
    board_id: UUID | None = None
    assigned_to: UUID | None = None

    @field_validator("title")
    @classmethod
    def _validate_title(cls, value: str) -> str:
        return require_non_blank(value, field_name="title")

    @field_validator("priority")
    @classmethod
    def _validate_priority(cls, value: str) -> str:
        return _validate_choice(value, field_name="priority", choices=TASK_PRIORITIES)

    @field_validator("status")
    @classmethod
    def _validate_status(cls, value: str) -> str:
        return _validate_choice(value, field_name="status", choices=TASK_STATUSES)


class TaskUpdate(SQLModel):
    """Payload for partial task updates.

    Omitted fields are left untouched. `description`, `due_date` and
    `assigned_to` accept explicit null to clear the stored value; the
    remaining fields reject null.
    """

    title: str | None = None
    description: str | None = None
    priority: str | None = None
    status: str | None = None
    due_date: datetime | None = None
    assigned_to: UUID | None = None

    @field_validator("title")
    @classmethod
    def _validate_title(cls, value: str | None) -> str:
        return require_non_blank(value, field_name="title")

    @field_validator("priority")
    @classmethod
    def _validate_priority(cls, value: str | None) -> str:
        return _validate_choice(value, field_name="priority", choices=TASK_PRIORITIES)

    @field_validator("status")
    @classmethod
    def _validate_status(cls, value: str | None) -> str:
        return _validate_choice(value, field_name="status", choices=TASK_STATUSES)


class TaskRead(SQLModel):
    """Task payload with creator, assignee, and board expanded."""

    id: UUID
    title: str
    description: str | None = None
    priority: str
    status: str
    due_date: datetime | None = None
    project_id: UUID
    board_id: UUID | None = None
    board: BoardSummary | None = None
    created_by_user_id: UUID
    created_by: UserSummary | None = None
    assigned_to_user_id: UUID | None = None
    assigned_to: UserSummary | None = None
    created_at: datetime
    updated_at: datetime
