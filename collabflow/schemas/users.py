"""User read schemas and the compact summary embedded in other payloads."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import Field
from sqlmodel import SQLModel

RUNTIME_ANNOTATION_TYPES = (datetime, UUID)


class UserSummary(SQLModel):
    """Display fields used when a user reference is expanded."""

    id: UUID
    username: str
    email: str
    full_name: str | None = None


class UserRead(UserSummary):
    """Full user payload returned by account endpoints."""

    role: str = Field(
        description="Global account role.",
        examples=["member"],
    )
    created_at: datetime
