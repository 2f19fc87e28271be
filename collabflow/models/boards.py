"""Board model grouping tasks inside a project."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlmodel import Field

from collabflow.core.time import utcnow
from collabflow.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)


class Board(QueryModel, table=True):
    """Project-scoped board; `project_id` never changes after creation."""

    __tablename__ = "boards"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    description: str | None = None
    project_id: UUID = Field(index=True)
    created_by_user_id: UUID | None = Field(default=None, foreign_key="users.id", index=True)
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)
