"""Common reusable schema primitives and simple API response envelopes."""

from __future__ import annotations

from pydantic import Field
from sqlmodel import SQLModel


def require_non_blank(value: str | None, *, field_name: str) -> str:
    """Strip a required text value, rejecting null and whitespace-only input."""
    if value is None:
        raise ValueError(f"{field_name} is required")
    cleaned = value.strip()
    if not cleaned:
        raise ValueError(f"{field_name} is required")
    return cleaned


class MessageResponse(SQLModel):
    """Plain confirmation payload returned by delete and bulk endpoints."""

    message: str = Field(examples=["Task deleted successfully"])


class CountResponse(SQLModel):
    """Single counter payload."""

    count: int = Field(ge=0, examples=[3])
