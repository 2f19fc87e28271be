"""Generic persistence helpers shared by API handlers and services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import delete as sa_delete
from sqlalchemy import update as sa_update
from sqlmodel import SQLModel

if TYPE_CHECKING:
    from collections.abc import Mapping

    from sqlmodel.ext.asyncio.session import AsyncSession

ModelT = TypeVar("ModelT", bound=SQLModel)


async def save(session: AsyncSession, obj: ModelT, *, commit: bool = True) -> ModelT:
    """Add an object to the session and optionally commit/refresh it."""
    session.add(obj)
    if commit:
        await session.commit()
        await session.refresh(obj)
    return obj


async def patch(
    session: AsyncSession,
    obj: ModelT,
    updates: Mapping[str, Any],
    *,
    commit: bool = True,
) -> ModelT:
    """Apply attribute updates to an object and persist it."""
    for key, value in updates.items():
        setattr(obj, key, value)
    return await save(session, obj, commit=commit)


async def delete(session: AsyncSession, obj: SQLModel, *, commit: bool = True) -> None:
    """Delete a single object."""
    await session.delete(obj)
    if commit:
        await session.commit()


async def update_where(
    session: AsyncSession,
    model: type[SQLModel],
    *criteria: Any,
    updates: Mapping[str, Any],
    commit: bool = True,
) -> int:
    """Bulk-update rows matching the criteria, returning the affected row count."""
    statement = sa_update(model).where(*criteria).values(**dict(updates))
    result = await session.exec(statement)  # type: ignore[call-overload]
    if commit:
        await session.commit()
    return int(getattr(result, "rowcount", 0) or 0)


async def delete_where(
    session: AsyncSession,
    model: type[SQLModel],
    *criteria: Any,
    commit: bool = True,
) -> int:
    """Bulk-delete rows matching the criteria, returning the affected row count."""
    statement = sa_delete(model).where(*criteria)
    result = await session.exec(statement)  # type: ignore[call-overload]
    if commit:
        await session.commit()
    return int(getattr(result, "rowcount", 0) or 0)
