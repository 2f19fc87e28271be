"""Schemas for task comment payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import field_validator
from sqlmodel import SQLModel

from collabflow.schemas.common import require_non_blank
from collabflow.schemas.users import UserSummary

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class CommentCreate(SQLModel):
    """Payload for commenting on a task."""

    content: str
    task_id: UUID

    @field_validator("content")
    @classmethod
    def _validate_content(cls, value: str) -> str:
        return require_non_blank(value, field_name="content")


class CommentUpdate(SQLModel):
    """Payload for editing a comment's text."""

    content: str | None = None

    @field_validator("content")
    @classmethod
    def _validate_content(cls, value: str | None) -> str:
        return require_non_blank(value, field_name="content")


class CommentRead(SQLModel):
    """Comment payload with the author expanded."""

    id: UUID
    content: str
    task_id: UUID
    author_id: UUID
    author: UserSummary | None = None
    created_at: datetime
    updated_at: datetime
