"""Batch loaders that expand id references into display summaries."""

from __future__ import annotations

from typing import TYPE_CHECKING

from collabflow.models.boards import Board
from collabflow.models.projects import Project
from collabflow.models.tasks import Task
from collabflow.models.users import User
from collabflow.schemas.boards import BoardSummary
from collabflow.schemas.notifications import ProjectSummary, TaskSummary
from collabflow.schemas.users import UserSummary

if TYPE_CHECKING:
    from collections.abc import Iterable
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession


def _distinct(ids: Iterable[UUID | None]) -> set[UUID]:
    return {value for value in ids if value is not None}


def user_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        username=user.username,
        email=user.email,
        full_name=user.full_name,
    )


async def user_summaries(
    session: AsyncSession,
    user_ids: Iterable[UUID | None],
) -> dict[UUID, UserSummary]:
    ids = _distinct(user_ids)
    if not ids:
        return {}
    users = await User.objects.by_ids(ids).all(session)
    return {user.id: user_summary(user) for user in users}


async def board_summaries(
    session: AsyncSession,
    board_ids: Iterable[UUID | None],
) -> dict[UUID, BoardSummary]:
    ids = _distinct(board_ids)
    if not ids:
        return {}
    boards = await Board.objects.by_ids(ids).all(session)
    return {board.id: BoardSummary(id=board.id, name=board.name) for board in boards}


async def project_summaries(
    session: AsyncSession,
    project_ids: Iterable[UUID | None],
) -> dict[UUID, ProjectSummary]:
    ids = _distinct(project_ids)
    if not ids:
        return {}
    projects = await Project.objects.by_ids(ids).all(session)
    return {project.id: ProjectSummary(id=project.id, name=project.name) for project in projects}


async def task_summaries(
    session: AsyncSession,
    task_ids: Iterable[UUID | None],
) -> dict[UUID, TaskSummary]:
    ids = _distinct(task_ids)
    if not ids:
        return {}
    tasks = await Task.objects.by_ids(ids).all(session)
    return {task.id: TaskSummary(id=task.id, title=task.title) for task in tasks}
