"""Schemas for board create/update/read API operations."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import field_validator
from sqlmodel import SQLModel

from collabflow.schemas.common import require_non_blank
from collabflow.schemas.users import UserSummary

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class BoardCreate(SQLModel):
    """Payload for creating a board inside a project."""

    name: str
    description: str | None = None
    project_id: UUID

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str) -> str:
        return require_non_blank(value, field_name="name")


class BoardUpdate(SQLModel):
    """Payload for partial board updates; the project cannot change."""

    name: str | None = None
    description: str | None = None

    @field_validator("name")
    @classmethod
    def _validate_name(cls, value: str | None) -> str:
        return require_non_blank(value, field_name="name")


class BoardSummary(SQLModel):
    """Display fields used when a board reference is expanded."""

    id: UUID
    name: str


class BoardRead(SQLModel):
    """Board payload returned from read endpoints."""

    id: UUID
    name: str
    description: str | None = None
    project_id: UUID
    created_by_user_id: UUID | None = None
    created_by: UserSummary | None = None
    created_at: datetime
    updated_at: datetime
