"""Registration, login, and token payload schemas."""

from __future__ import annotations

from pydantic import EmailStr, Field, field_validator
from sqlmodel import SQLModel

from collabflow.schemas.common import require_non_blank
from collabflow.schemas.users import UserRead

PASSWORD_MAX_BYTES = 72


class RegisterRequest(SQLModel):
    """Payload for creating an account."""

    username: str = Field(min_length=1, max_length=64)
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str | None = None

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: str) -> str:
        return require_non_blank(value, field_name="username")

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("password")
    @classmethod
    def _check_password_bytes(cls, value: str) -> str:
        # bcrypt rejects secrets longer than 72 bytes once encoded.
        if len(value.encode("utf-8")) > PASSWORD_MAX_BYTES:
            raise ValueError(f"password must be at most {PASSWORD_MAX_BYTES} bytes")
        return value


class LoginRequest(SQLModel):
    """Credentials exchanged for an access token."""

    email: str
    password: str

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class TokenResponse(SQLModel):
    """Bearer token issued after registration or login."""

    access_token: str
    token_type: str = "bearer"
    user: UserRead
