"""Schemas for project create/update/read and membership operations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import field_validator
from sqlmodel import Field, SQLModel

from collabflow.models.projects import MEMBER_ROLES, OWNER_ROLE, PROJECT_STATUSES
from collabflow.schemas.common import require_non_blank
from collabflow.schemas.users import UserSummary

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


def _clean_tags(tags: list[str] | None) -> list[str] | None:
    if tags is None:
        return None
    cleaned: list[str] = []
    for tag in tags:
        text = tag.strip()
        if text and text not in cleaned:
            cleaned.append(text)
    return cleaned


class ProjectCreate(SQLModel):
    """Payload for creating a project owned by the caller."""

    name: str
    description: str | None = None
    tags: list[str] = Field(default_factory=list)

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return require_non_blank(value, field_name="name")

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value: list[str]) -> list[str]:
        return _clean_tags(value) or []


class ProjectUpdate(SQLModel):
    """Payload for partial project updates."""

    name: str | None = None
    description: str | None = None
    status: str | None = None
    tags: list[str] | None = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str | None) -> str:
        return require_non_blank(value, field_name="name")

    @field_validator("status")
    @classmethod
    def _validate_status(cls, value: str | None) -> str:
        if value not in PROJECT_STATUSES:
            raise ValueError(f"status must be one of: {', '.join(sorted(PROJECT_STATUSES))}")
        return value

    @field_validator("tags")
    @classmethod
    def _validate_tags(cls, value: list[str] | None) -> list[str]:
        # Explicit null clears the tag list.
        return _clean_tags(value) or []


class ProjectMemberCreate(SQLModel):
    """Payload for adding a user to a project."""

    user_id: UUID
    role: str = "member"

    @field_validator("role")
    @classmethod
    def _validate_role(cls, value: str) -> str:
        role = value.strip().lower()
        if role == OWNER_ROLE or role not in MEMBER_ROLES:
            allowed = sorted(MEMBER_ROLES - {OWNER_ROLE})
            raise ValueError(f"role must be one of: {', '.join(allowed)}")
        return role


class ProjectMemberRead(SQLModel):
    """Membership entry with the member's display fields."""

    user_id: UUID
    role: str
    user: UserSummary | None = None


class ProjectRead(SQLModel):
    """Project payload with owner and members expanded."""

    id: UUID
    name: str
    description: str | None = None
    status: str
    tags: list[str] = Field(default_factory=list)
    owner_id: UUID
    owner: UserSummary | None = None
    members: list[ProjectMemberRead] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime
