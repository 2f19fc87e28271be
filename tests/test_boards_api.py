# ruff: noqa: INP001
"""Board API access-control tests."""

from __future__ import annotations

from uuid import uuid4

import pytest
from httpx import AsyncClient


async def _project(client: AsyncClient, owner) -> str:
    resp = await client.post("/api/v1/projects", json={"name": "Demo"}, headers=owner.headers)
    assert resp.status_code == 201
    return resp.json()["id"]


@pytest.mark.asyncio
async def test_non_member_cannot_list_project_boards(client: AsyncClient, register_user) -> None:
    alice = await register_user("alice")
    bob = await register_user("bob")
    project_id = await _project(client, alice)

    resp = await client.get(f"/api/v1/boards/project/{project_id}", headers=bob.headers)

    assert resp.status_code == 403
    assert resp.json()["detail"] == "Not authorized"


@pytest.mark.asyncio
async def test_board_for_missing_project_is_404(client: AsyncClient, register_user) -> None:
    alice = await register_user("alice")

    create = await client.post(
        "/api/v1/boards",
        json={"name": "Sprint", "project_id": str(uuid4())},
        headers=alice.headers,
    )
    listing = await client.get(f"/api/v1/boards/project/{uuid4()}", headers=alice.headers)

    assert create.status_code == 404
    assert create.json()["detail"] == "Project not found"
    assert listing.status_code == 404


@pytest.mark.asyncio
async def test_board_crud_for_members(client: AsyncClient, register_user) -> None:
    alice = await register_user("alice")
    bob = await register_user("bob")
    project_id = await _project(client, alice)
    await client.post(
        f"/api/v1/projects/{project_id}/members",
        json={"user_id": str(bob.id)},
        headers=alice.headers,
    )

    created = await client.post(
        "/api/v1/boards",
        json={"name": "Sprint 1", "description": "first", "project_id": project_id},
        headers=bob.headers,
    )
    assert created.status_code == 201
    board = created.json()
    assert board["created_by"]["username"] == "bob"

    newer = await client.post(
        "/api/v1/boards",
        json={"name": "Sprint 2", "project_id": project_id},
        headers=alice.headers,
    )
    listing = await client.get(f"/api/v1/boards/project/{project_id}", headers=bob.headers)
    assert [b["id"] for b in listing.json()] == [newer.json()["id"], board["id"]]

    updated = await client.put(
        f"/api/v1/boards/{board['id']}",
        json={"description": None},
        headers=bob.headers,
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Sprint 1"
    assert updated.json()["description"] is None
    assert updated.json()["project_id"] == project_id

    by_member = await client.delete(f"/api/v1/boards/{board['id']}", headers=bob.headers)
    assert by_member.status_code == 403
    assert by_member.json()["detail"] == "Only project owner can delete boards"

    by_owner = await client.delete(f"/api/v1/boards/{board['id']}", headers=alice.headers)
    assert by_owner.status_code == 200
    assert (
        await client.get(f"/api/v1/boards/{board['id']}", headers=alice.headers)
    ).status_code == 404
