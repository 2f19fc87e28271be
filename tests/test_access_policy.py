# ruff: noqa: INP001
"""Ownership and membership predicate tests."""

from __future__ import annotations

from uuid import uuid4

from collabflow.models.comments import Comment
from collabflow.models.projects import OWNER_ROLE, Project, ProjectMember
from collabflow.services.access import (
    ProjectAccess,
    build_owner_membership,
    can_access,
    can_delete,
    can_delete_comment,
    can_modify_comment,
)


def _project_with_member() -> tuple[Project, ProjectMember, ProjectAccess]:
    owner_id = uuid4()
    project = Project(id=uuid4(), name="Demo", owner_id=owner_id)
    member = ProjectMember(project_id=project.id, user_id=uuid4(), role="member")
    access = ProjectAccess(
        project=project,
        members=(build_owner_membership(project), member),
    )
    return project, member, access


def test_owner_and_members_can_access_but_strangers_cannot() -> None:
    project, member, access = _project_with_member()

    assert can_access(project.owner_id, access)
    assert can_access(member.user_id, access)
    assert not can_access(uuid4(), access)


def test_owner_can_access_even_without_membership_row() -> None:
    project = Project(id=uuid4(), name="Bare", owner_id=uuid4())

    assert can_access(project.owner_id, ProjectAccess(project=project, members=()))


def test_only_owner_can_delete() -> None:
    project, member, _ = _project_with_member()

    assert can_delete(project.owner_id, project)
    assert not can_delete(member.user_id, project)


def test_comment_edit_is_author_only_but_owner_may_delete() -> None:
    project, member, _ = _project_with_member()
    comment = Comment(task_id=uuid4(), author_id=member.user_id, content="hi")

    assert can_modify_comment(comment, member.user_id)
    assert not can_modify_comment(comment, project.owner_id)
    assert can_delete_comment(comment, member.user_id, project)
    assert can_delete_comment(comment, project.owner_id, project)
    assert not can_delete_comment(comment, uuid4(), project)


def test_owner_membership_row_uses_owner_role() -> None:
    project = Project(id=uuid4(), name="Demo", owner_id=uuid4())
    membership = build_owner_membership(project)

    assert membership.project_id == project.id
    assert membership.user_id == project.owner_id
    assert membership.role == OWNER_ROLE
