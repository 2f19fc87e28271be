"""Comment model attached to tasks."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from collabflow.core.time import utcnow
from collabflow.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Comment(QueryModel, table=True):
    """Task comment; the author is fixed at creation."""

    __tablename__ = "comments"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    task_id: UUID = Field(index=True)
    author_id: UUID = Field(foreign_key="users.id", index=True)
    content: str
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
