# ruff: noqa: INP001
"""Comment API tests covering authorship rules and comment notifications."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from collabflow.models.notifications import Notification
from collabflow.services import notifications as notifications_service


async def _task_assigned_to_bob(client: AsyncClient, register_user):
    alice = await register_user("alice")
    bob = await register_user("bob")
    project = await client.post("/api/v1/projects", json={"name": "Demo"}, headers=alice.headers)
    project_id = project.json()["id"]
    await client.post(
        f"/api/v1/projects/{project_id}/members",
        json={"user_id": str(bob.id)},
        headers=alice.headers,
    )
    task = await client.post(
        "/api/v1/tasks",
        json={"title": "Review PR", "project_id": project_id, "assigned_to": str(bob.id)},
        headers=alice.headers,
    )
    return alice, bob, task.json()["id"]


async def _comment_notifications(client: AsyncClient, user) -> list[dict]:
    resp = await client.get("/api/v1/notifications", headers=user.headers)
    return [item for item in resp.json() if item["type"] == "comment_added"]


@pytest.mark.asyncio
async def test_each_comment_by_someone_else_notifies_assignee(
    client: AsyncClient,
    register_user,
) -> None:
    alice, bob, task_id = await _task_assigned_to_bob(client, register_user)

    first = await client.post(
        "/api/v1/comments",
        json={"content": "Looks good", "task_id": task_id},
        headers=alice.headers,
    )
    assert first.status_code == 201
    assert first.json()["author"]["username"] == "alice"
    assert len(await _comment_notifications(client, bob)) == 1

    await client.post(
        "/api/v1/comments",
        json={"content": "One more thing", "task_id": task_id},
        headers=alice.headers,
    )
    notes = await _comment_notifications(client, bob)
    assert len(notes) == 2
    assert all(n["message"] == "New comment on task: Review PR" for n in notes)

    # The assignee commenting on their own task is not notified.
    await client.post(
        "/api/v1/comments",
        json={"content": "Done", "task_id": task_id},
        headers=bob.headers,
    )
    assert len(await _comment_notifications(client, bob)) == 2

    listing = await client.get(f"/api/v1/comments/task/{task_id}", headers=bob.headers)
    assert [c["content"] for c in listing.json()] == ["Done", "One more thing", "Looks good"]


@pytest.mark.asyncio
async def test_comment_on_missing_task_is_404(client: AsyncClient, register_user) -> None:
    alice = await register_user("alice")

    resp = await client.post(
        "/api/v1/comments",
        json={"content": "hi", "task_id": "00000000-0000-0000-0000-000000000000"},
        headers=alice.headers,
    )

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Task not found"


@pytest.mark.asyncio
async def test_non_member_cannot_comment(client: AsyncClient, register_user) -> None:
    _, _, task_id = await _task_assigned_to_bob(client, register_user)
    mallory = await register_user("mallory")

    resp = await client.post(
        "/api/v1/comments",
        json={"content": "spam", "task_id": task_id},
        headers=mallory.headers,
    )

    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_comment_edit_and_delete_rules(client: AsyncClient, register_user) -> None:
    alice, bob, task_id = await _task_assigned_to_bob(client, register_user)
    by_bob = await client.post(
        "/api/v1/comments",
        json={"content": "bob's note", "task_id": task_id},
        headers=bob.headers,
    )
    comment_url = f"/api/v1/comments/{by_bob.json()['id']}"

    owner_edit = await client.put(comment_url, json={"content": "edited"}, headers=alice.headers)
    assert owner_edit.status_code == 403
    assert owner_edit.json()["detail"] == "Only comment author can update it"

    author_edit = await client.put(comment_url, json={"content": "edited"}, headers=bob.headers)
    assert author_edit.status_code == 200
    assert author_edit.json()["content"] == "edited"
    assert author_edit.json()["author_id"] == str(bob.id)

    by_alice = await client.post(
        "/api/v1/comments",
        json={"content": "alice's note", "task_id": task_id},
        headers=alice.headers,
    )
    member_delete = await client.delete(
        f"/api/v1/comments/{by_alice.json()['id']}",
        headers=bob.headers,
    )
    assert member_delete.status_code == 403
    assert member_delete.json()["detail"] == "Not authorized to delete this comment"

    owner_delete = await client.delete(comment_url, headers=alice.headers)
    assert owner_delete.status_code == 200
    assert (await client.get(comment_url, headers=alice.headers)).status_code == 404


@pytest.mark.asyncio
async def test_notification_failure_does_not_undo_comment(
    client: AsyncClient,
    register_user,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    alice, bob, task_id = await _task_assigned_to_bob(client, register_user)

    def _broken_notification(**kwargs: object) -> Notification:
        raise RuntimeError("notifications store is down")

    monkeypatch.setattr(notifications_service, "Notification", _broken_notification)

    created = await client.post(
        "/api/v1/comments",
        json={"content": "still saved", "task_id": task_id},
        headers=alice.headers,
    )

    assert created.status_code == 201
    listing = await client.get(f"/api/v1/comments/task/{task_id}", headers=alice.headers)
    assert [c["content"] for c in listing.json()] == ["still saved"]
    assert await _comment_notifications(client, bob) == []
