"""Project model and its membership rows."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

from sqlalchemy import JSON, Column, UniqueConstraint
from sqlmodel import Field

from collabflow.core.time import utcnow
from collabflow.models.base import QueryModel

RUNTIME_ANNOTATION_TYPES = (datetime,)
PROJECT_STATUSES = frozenset({"active", "on_hold", "completed", "archived"})
OWNER_ROLE = "owner"
MEMBER_ROLES = frozenset({OWNER_ROLE, "admin", "member", "viewer"})


class Project(QueryModel, table=True):
    """Top-level container for boards and tasks, owned by one user."""

    __tablename__ = "projects"  # pyright: ignore[reportAssignmentType]

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    name: str
    description: str | None = None
    owner_id: UUID = Field(foreign_key="users.id", index=True)
    status: str = Field(default="active", index=True)
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    created_at: datetime = Field(default_factory=utcnow, index=True)
    updated_at: datetime = Field(default_factory=utcnow)


class ProjectMember(QueryModel, table=True):
    """Membership row linking a user to a project with a role."""

    __tablename__ = "project_members"  # pyright: ignore[reportAssignmentType]
    __table_args__ = (
        UniqueConstraint(
            "project_id",
            "user_id",
            name="uq_project_members_project_user",
        ),
    )

    id: UUID = Field(default_factory=uuid4, primary_key=True)
    # Soft reference; rows are removed together with their project.
    project_id: UUID = Field(index=True)
    user_id: UUID = Field(foreign_key="users.id", index=True)
    role: str = Field(default="member")
    created_at: datetime = Field(default_factory=utcnow)
