"""Account registration, login, and current-user endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, status
from sqlalchemy.exc import IntegrityError

from collabflow.api.deps import AUTH_DEP, SESSION_DEP
from collabflow.core.logging import get_logger
from collabflow.core.security import create_access_token, hash_password, verify_password
from collabflow.db import crud
from collabflow.models.users import User
from collabflow.schemas.auth import LoginRequest, RegisterRequest, TokenResponse
from collabflow.schemas.users import UserRead

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from collabflow.core.auth import AuthContext

router = APIRouter(prefix="/auth", tags=["auth"])
logger = get_logger(__name__)
ACCOUNT_EXISTS = "Account already registered"


def _token_response(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id),
        user=UserRead.model_validate(user, from_attributes=True),
    )


async def _registration_conflict(session: AsyncSession, payload: RegisterRequest) -> str | None:
    if await User.objects.filter_by(email=payload.email).first(session) is not None:
        return "Email already registered"
    if await User.objects.filter_by(username=payload.username).first(session) is not None:
        return "Username already taken"
    return None


@router.post("/register", response_model=TokenResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    session: AsyncSession = SESSION_DEP,
) -> TokenResponse:
    """Create an account and return a bearer token for it."""
    conflict = await _registration_conflict(session, payload)
    if conflict is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=conflict)
    user = User(
        username=payload.username,
        email=payload.email,
        hashed_password=hash_password(payload.password),
        full_name=payload.full_name,
    )
    try:
        user = await crud.save(session, user)
    except IntegrityError as exc:
        # A concurrent registration claimed the email or username first.
        await session.rollback()
        logger.info("auth.register.conflict", extra={"error": str(exc.orig)})
        detail = await _registration_conflict(session, payload) or ACCOUNT_EXISTS
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=detail) from exc
    logger.info("auth.register", extra={"user_id": str(user.id)})
    return _token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    payload: LoginRequest,
    session: AsyncSession = SESSION_DEP,
) -> TokenResponse:
    """Exchange email and password for a bearer token."""
    user = await User.objects.filter_by(email=payload.email).first(session)
    if user is None or not verify_password(payload.password, user.hashed_password):
        logger.info("auth.login.rejected")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    return _token_response(user)


@router.get("/me", response_model=UserRead)
async def read_current_user(auth: AuthContext = AUTH_DEP) -> UserRead:
    """Return the authenticated user's profile."""
    return UserRead.model_validate(auth.user, from_attributes=True)
