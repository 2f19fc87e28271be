"""Project ownership/membership authorization policy.

The predicates at the top of this module are pure: they only look at ids that
were already resolved. The `require_*` helpers wrap them for request handlers
and raise `HTTPException(403)`; callers resolve the target entities first so a
missing entity always surfaces as 404 before any authorization check runs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi import HTTPException, status
from sqlmodel import col

from collabflow.models.projects import OWNER_ROLE, Project, ProjectMember

if TYPE_CHECKING:
    from uuid import UUID

    from sqlmodel.ext.asyncio.session import AsyncSession

    from collabflow.models.comments import Comment
    from collabflow.models.users import User

NOT_AUTHORIZED = "Not authorized"


@dataclass(frozen=True)
class ProjectAccess:
    """Resolved project plus the ids of its listed members."""

    project: Project
    members: tuple[ProjectMember, ...]

    @property
    def member_ids(self) -> frozenset[UUID]:
        return frozenset(member.user_id for member in self.members)


def can_access(caller_id: UUID, access: ProjectAccess) -> bool:
    """Return whether the caller owns the project or is a listed member."""
    return caller_id == access.project.owner_id or caller_id in access.member_ids


def can_delete(caller_id: UUID, project: Project) -> bool:
    """Return whether the caller may delete the project or its sub-resources."""
    return caller_id == project.owner_id


def can_modify_comment(comment: Comment, caller_id: UUID) -> bool:
    """Return whether the caller may edit the comment."""
    return caller_id == comment.author_id


def can_delete_comment(comment: Comment, caller_id: UUID, project: Project) -> bool:
    """Return whether the caller may delete the comment (author or project owner)."""
    return can_modify_comment(comment, caller_id) or can_delete(caller_id, project)


def build_owner_membership(project: Project) -> ProjectMember:
    """Create the implicit owner membership row for a new project."""
    return ProjectMember(project_id=project.id, user_id=project.owner_id, role=OWNER_ROLE)


async def load_project_access(session: AsyncSession, project: Project) -> ProjectAccess:
    """Load the membership rows needed to evaluate access on a project."""
    members = await (
        ProjectMember.objects.filter_by(project_id=project.id)
        .order_by(col(ProjectMember.created_at).asc())
        .all(session)
    )
    return ProjectAccess(project=project, members=tuple(members))


async def require_project_access(
    session: AsyncSession,
    *,
    project: Project,
    user: User,
) -> ProjectAccess:
    """Require owner-or-member access, raising 403 otherwise."""
    access = await load_project_access(session, project)
    if not can_access(user.id, access):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=NOT_AUTHORIZED)
    return access


def require_project_owner(project: Project, *, user: User, detail: str) -> None:
    """Require project ownership, raising 403 with an endpoint-specific message."""
    if not can_delete(user.id, project):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


async def accessible_project_ids(session: AsyncSession, *, user: User) -> set[UUID]:
    """Return ids of projects the user owns or is a member of."""
    owned = await Project.objects.filter_by(owner_id=user.id).all(session)
    memberships = await ProjectMember.objects.filter_by(user_id=user.id).all(session)
    return {project.id for project in owned} | {member.project_id for member in memberships}
