"""Database engine, session factory, and startup migration helpers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from alembic.config import Config
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from collabflow import models as _models
from collabflow.core.config import settings
from collabflow.core.logging import get_logger

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

# Import model modules so SQLModel metadata is fully registered at startup.
_MODEL_REGISTRY = _models
PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _normalize_database_url(database_url: str) -> str:
    if "://" not in database_url:
        return database_url
    scheme, rest = database_url.split("://", 1)
    if scheme == "postgresql":
        return f"postgresql+psycopg://{rest}"
    return database_url


logger = get_logger(__name__)


@dataclass
class DatabaseHandles:
    """Engine and session factory owned by the running application."""

    engine: AsyncEngine
    session_maker: async_sessionmaker[AsyncSession]


_handles: DatabaseHandles | None = None


def create_handles(database_url: str | None = None) -> DatabaseHandles:
    """Build an engine and session factory for the configured database."""
    engine = create_async_engine(
        _normalize_database_url(database_url or settings.database_url),
        pool_pre_ping=True,
    )
    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    return DatabaseHandles(engine=engine, session_maker=session_maker)


def get_handles() -> DatabaseHandles:
    if _handles is None:
        raise RuntimeError("Database is not initialized; call init_db() first")
    return _handles


def _alembic_config() -> Config:
    alembic_cfg = Config(str(PROJECT_ROOT / "alembic.ini"))
    alembic_cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    alembic_cfg.attributes["configure_logger"] = False
    return alembic_cfg


def run_migrations() -> None:
    """Apply Alembic migrations to the latest revision."""
    from alembic import command

    logger.info("Running database migrations.")
    command.upgrade(_alembic_config(), "head")
    logger.info("Database migrations complete.")


async def init_db(database_url: str | None = None) -> DatabaseHandles:
    """Open the database handles and bring the schema up to date."""
    global _handles  # noqa: PLW0603
    if _handles is None:
        _handles = create_handles(database_url)
    if settings.db_auto_migrate:
        versions_dir = PROJECT_ROOT / "migrations" / "versions"
        if any(versions_dir.glob("*.py")):
            logger.info("Running migrations on startup")
            await asyncio.to_thread(run_migrations)
            return _handles
        logger.warning("No migration revisions found; falling back to create_all")

    async with _handles.engine.connect() as conn, conn.begin():
        await conn.run_sync(SQLModel.metadata.create_all)
    return _handles


async def close_db() -> None:
    """Dispose pooled connections and drop the handles on shutdown."""
    global _handles  # noqa: PLW0603
    if _handles is None:
        return
    handles, _handles = _handles, None
    await handles.engine.dispose()


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a request-scoped async DB session with safe rollback on errors."""
    async with get_handles().session_maker() as session:
        try:
            yield session
        finally:
            in_txn = False
            try:
                in_txn = bool(session.in_transaction())
            except SQLAlchemyError:
                logger.exception("Failed to inspect session transaction state.")
            if in_txn:
                try:
                    await session.rollback()
                except SQLAlchemyError:
                    logger.exception("Failed to rollback session after request error.")
