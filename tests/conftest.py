# ruff: noqa: INP001, E402
"""Pytest configuration shared across backend tests."""

import os
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Settings are validated at import time, so deterministic values must be in
# place before any collabflow module is imported.
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret-0123456789-0123456789-abcdef"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "test"
os.environ["REALTIME_REDIS_URL"] = ""

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass
from typing import Any
from uuid import UUID

import pytest_asyncio
from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from collabflow import models as _models
from collabflow.api.auth import router as auth_router
from collabflow.api.boards import router as boards_router
from collabflow.api.comments import router as comments_router
from collabflow.api.notifications import router as notifications_router
from collabflow.api.projects import router as projects_router
from collabflow.api.tasks import router as tasks_router
from collabflow.core.error_handling import install_error_handling
from collabflow.db.session import get_session

_MODEL_REGISTRY = _models


@dataclass
class RegisteredUser:
    id: UUID
    username: str
    token: str

    @property
    def headers(self) -> dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"}


def _build_test_app(session_maker: async_sessionmaker[AsyncSession]) -> FastAPI:
    app = FastAPI()
    install_error_handling(app)
    api_v1 = APIRouter(prefix="/api/v1")
    for router in (
        auth_router,
        projects_router,
        boards_router,
        tasks_router,
        comments_router,
        notifications_router,
    ):
        api_v1.include_router(router)
    app.include_router(api_v1)

    async def _override_get_session() -> AsyncIterator[AsyncSession]:
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_session] = _override_get_session
    return app


@pytest_asyncio.fixture
async def session_maker() -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def client(
    session_maker: async_sessionmaker[AsyncSession],
) -> AsyncIterator[AsyncClient]:
    app = _build_test_app(session_maker)
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://testserver",
    ) as http:
        yield http


@pytest_asyncio.fixture
async def register_user(
    client: AsyncClient,
) -> Callable[[str], Awaitable[RegisteredUser]]:
    async def _register(username: str, **extra: Any) -> RegisteredUser:
        response = await client.post(
            "/api/v1/auth/register",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": "s3cret-pass",
                **extra,
            },
        )
        assert response.status_code == 201, response.text
        body = response.json()
        return RegisteredUser(
            id=UUID(body["user"]["id"]),
            username=username,
            token=body["access_token"],
        )

    return _register
