"""Project CRUD and membership endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING
from uuid import UUID

from fastapi import APIRouter, HTTPException, status
from sqlmodel import col

from collabflow.api.deps import AUTH_DEP, SESSION_DEP, get_project_or_404, get_user_or_404
from collabflow.core.logging import get_logger
from collabflow.core.time import utcnow
from collabflow.db import crud
from collabflow.models.boards import Board
from collabflow.models.projects import Project, ProjectMember
from collabflow.models.tasks import Task
from collabflow.schemas.common import MessageResponse
from collabflow.schemas.projects import (
    ProjectCreate,
    ProjectMemberCreate,
    ProjectMemberRead,
    ProjectRead,
    ProjectUpdate,
)
from collabflow.services.access import (
    ProjectAccess,
    accessible_project_ids,
    build_owner_membership,
    load_project_access,
    require_project_access,
    require_project_owner,
)
from collabflow.services.summaries import user_summaries

if TYPE_CHECKING:
    from sqlmodel.ext.asyncio.session import AsyncSession

    from collabflow.core.auth import AuthContext

router = APIRouter(prefix="/projects", tags=["projects"])
logger = get_logger(__name__)


async def _read_many(session: AsyncSession, accesses: list[ProjectAccess]) -> list[ProjectRead]:
    user_ids = [access.project.owner_id for access in accesses]
    user_ids.extend(member.user_id for access in accesses for member in access.members)
    users = await user_summaries(session, user_ids)
    return [
        ProjectRead(
            id=access.project.id,
            name=access.project.name,
            description=access.project.description,
            status=access.project.status,
            tags=list(access.project.tags or []),
            owner_id=access.project.owner_id,
            owner=users.get(access.project.owner_id),
            members=[
                ProjectMemberRead(
                    user_id=member.user_id,
                    role=member.role,
                    user=users.get(member.user_id),
                )
                for member in access.members
            ],
            created_at=access.project.created_at,
            updated_at=access.project.updated_at,
        )
        for access in accesses
    ]


async def _read_one(session: AsyncSession, project: Project) -> ProjectRead:
    access = await load_project_access(session, project)
    return (await _read_many(session, [access]))[0]


@router.post("", response_model=ProjectRead, status_code=status.HTTP_201_CREATED)
async def create_project(
    payload: ProjectCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProjectRead:
    """Create a project owned by the caller, who becomes its first member."""
    project = Project(
        name=payload.name,
        description=payload.description,
        tags=payload.tags,
        owner_id=auth.user.id,
    )
    session.add(project)
    session.add(build_owner_membership(project))
    await session.commit()
    await session.refresh(project)
    logger.info(
        "project.create",
        extra={"project_id": str(project.id), "owner_id": str(auth.user.id)},
    )
    return await _read_one(session, project)


@router.get("", response_model=list[ProjectRead])
async def list_projects(
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> list[ProjectRead]:
    """List projects the caller owns or belongs to, newest first."""
    project_ids = await accessible_project_ids(session, user=auth.user)
    if not project_ids:
        return []
    projects = await (
        Project.objects.by_ids(project_ids)
        .order_by(col(Project.created_at).desc())
        .all(session)
    )
    members = await (
        ProjectMember.objects.by_field_in("project_id", project_ids)
        .order_by(col(ProjectMember.created_at).asc())
        .all(session)
    )
    by_project: dict[UUID, list[ProjectMember]] = {}
    for member in members:
        by_project.setdefault(member.project_id, []).append(member)
    accesses = [
        ProjectAccess(project=project, members=tuple(by_project.get(project.id, [])))
        for project in projects
    ]
    return await _read_many(session, accesses)


@router.get("/{project_id}", response_model=ProjectRead)
async def get_project(
    project_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProjectRead:
    """Get a project the caller can access."""
    project = await get_project_or_404(session, project_id)
    access = await require_project_access(session, project=project, user=auth.user)
    return (await _read_many(session, [access]))[0]


@router.put("/{project_id}", response_model=ProjectRead)
async def update_project(
    project_id: UUID,
    payload: ProjectUpdate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProjectRead:
    """Apply a partial update to a project (owner only)."""
    project = await get_project_or_404(session, project_id)
    require_project_owner(
        project,
        user=auth.user,
        detail="Only project owner can update the project",
    )
    updates = payload.model_dump(exclude_unset=True)
    updates["updated_at"] = utcnow()
    project = await crud.patch(session, project, updates)
    logger.info(
        "project.update",
        extra={"project_id": str(project.id), "fields": sorted(updates)},
    )
    return await _read_one(session, project)


@router.delete("/{project_id}", response_model=MessageResponse)
async def delete_project(
    project_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> MessageResponse:
    """Delete a project and its membership list (owner only).

    Boards and tasks that reference the project are left in place.
    """
    project = await get_project_or_404(session, project_id)
    require_project_owner(
        project,
        user=auth.user,
        detail="Only project owner can delete the project",
    )
    orphaned_boards = await Board.objects.filter_by(project_id=project.id).count(session)
    orphaned_tasks = await Task.objects.filter_by(project_id=project.id).count(session)
    await crud.delete_where(
        session,
        ProjectMember,
        col(ProjectMember.project_id) == project.id,
        commit=False,
    )
    await crud.delete(session, project)
    if orphaned_boards or orphaned_tasks:
        logger.warning(
            "project.delete.orphans",
            extra={
                "project_id": str(project_id),
                "boards": orphaned_boards,
                "tasks": orphaned_tasks,
            },
        )
    logger.info("project.delete", extra={"project_id": str(project_id)})
    return MessageResponse(message="Project deleted")


@router.post(
    "/{project_id}/members",
    response_model=ProjectRead,
    status_code=status.HTTP_201_CREATED,
)
async def add_project_member(
    project_id: UUID,
    payload: ProjectMemberCreate,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProjectRead:
    """Add a user to the project's member list (owner only)."""
    project = await get_project_or_404(session, project_id)
    await get_user_or_404(session, payload.user_id)
    require_project_owner(
        project,
        user=auth.user,
        detail="Only project owner can manage members",
    )
    access = await load_project_access(session, project)
    if payload.user_id == project.owner_id or payload.user_id in access.member_ids:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="User is already a project member",
        )
    await crud.save(
        session,
        ProjectMember(project_id=project.id, user_id=payload.user_id, role=payload.role),
    )
    logger.info(
        "project.member.add",
        extra={"project_id": str(project.id), "user_id": str(payload.user_id)},
    )
    return await _read_one(session, project)


@router.delete("/{project_id}/members/{user_id}", response_model=ProjectRead)
async def remove_project_member(
    project_id: UUID,
    user_id: UUID,
    session: AsyncSession = SESSION_DEP,
    auth: AuthContext = AUTH_DEP,
) -> ProjectRead:
    """Remove a user from the project's member list (owner only)."""
    project = await get_project_or_404(session, project_id)
    require_project_owner(
        project,
        user=auth.user,
        detail="Only project owner can manage members",
    )
    if user_id == project.owner_id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot remove the project owner",
        )
    member = await ProjectMember.objects.filter_by(project_id=project.id, user_id=user_id).first(
        session,
    )
    if member is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User is not a project member",
        )
    await crud.delete(session, member)
    logger.info(
        "project.member.remove",
        extra={"project_id": str(project.id), "user_id": str(user_id)},
    )
    return await _read_one(session, project)
