# ruff: noqa: INP001
"""Registration, login, and bearer-token authentication API tests."""

from __future__ import annotations

import pytest
from httpx import AsyncClient

from collabflow.api import auth as auth_api


@pytest.mark.asyncio
async def test_register_returns_token_and_normalised_user(client: AsyncClient) -> None:
    resp = await client.post(
        "/api/v1/auth/register",
        json={
            "username": "alice",
            "email": "  Alice@Example.COM ",
            "password": "s3cret-pass",
            "full_name": "Alice A.",
        },
    )

    assert resp.status_code == 201
    body = resp.json()
    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["user"]["email"] == "alice@example.com"
    assert body["user"]["role"] == "member"
    assert "hashed_password" not in body["user"]


@pytest.mark.asyncio
async def test_duplicate_email_and_username_conflict(client: AsyncClient, register_user) -> None:
    await register_user("alice")

    dup_email = await client.post(
        "/api/v1/auth/register",
        json={"username": "other", "email": "alice@example.com", "password": "s3cret-pass"},
    )
    dup_username = await client.post(
        "/api/v1/auth/register",
        json={"username": "alice", "email": "new@example.com", "password": "s3cret-pass"},
    )

    assert dup_email.status_code == 409
    assert dup_email.json()["detail"] == "Email already registered"
    assert dup_username.status_code == 409
    assert dup_username.json()["detail"] == "Username already taken"


@pytest.mark.asyncio
async def test_short_password_is_rejected(client: AsyncClient) -> None:
    resp = await client.post(
        "/api/v1/auth/register",
        json={"username": "bob", "email": "bob@example.com", "password": "123"},
    )

    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_and_me(client: AsyncClient, register_user) -> None:
    alice = await register_user("alice")

    login = await client.post(
        "/api/v1/auth/login",
        json={"email": "ALICE@example.com", "password": "s3cret-pass"},
    )
    assert login.status_code == 200
    token = login.json()["access_token"]

    me = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.status_code == 200
    assert me.json()["id"] == str(alice.id)
    assert me.json()["username"] == "alice"


@pytest.mark.asyncio
async def test_login_with_wrong_password_is_401(client: AsyncClient, register_user) -> None:
    await register_user("alice")

    resp = await client.post(
        "/api/v1/auth/login",
        json={"email": "alice@example.com", "password": "wrong-pass"},
    )

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid credentials"


@pytest.mark.asyncio
async def test_missing_and_invalid_tokens_are_rejected(client: AsyncClient) -> None:
    missing = await client.get("/api/v1/projects")
    invalid = await client.get(
        "/api/v1/projects",
        headers={"Authorization": "Bearer not-a-jwt"},
    )

    assert missing.status_code == 401
    assert missing.json()["detail"] == "No token, authorization denied"
    assert invalid.status_code == 401
    assert invalid.json()["detail"] == "Token is not valid"


@pytest.mark.asyncio
async def test_password_length_is_measured_in_utf8_bytes(client: AsyncClient) -> None:
    too_long = await client.post(
        "/api/v1/auth/register",
        json={"username": "elodie", "email": "elodie@example.com", "password": "é" * 40},
    )
    assert too_long.status_code == 422

    accepted = await client.post(
        "/api/v1/auth/register",
        json={"username": "elodie", "email": "elodie@example.com", "password": "é" * 36},
    )
    assert accepted.status_code == 201

    login = await client.post(
        "/api/v1/auth/login",
        json={"email": "elodie@example.com", "password": "é" * 36},
    )
    assert login.status_code == 200


@pytest.mark.asyncio
async def test_registration_race_on_unique_email_is_409(
    client: AsyncClient,
    register_user,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    await register_user("alice")
    real_conflict = auth_api._registration_conflict
    calls: list[str] = []

    async def _stale_conflict(session, payload):
        # The first lookup runs before the competing row was committed.
        calls.append(payload.email)
        if len(calls) == 1:
            return None
        return await real_conflict(session, payload)

    monkeypatch.setattr(auth_api, "_registration_conflict", _stale_conflict)

    resp = await client.post(
        "/api/v1/auth/register",
        json={"username": "alice2", "email": "alice@example.com", "password": "s3cret-pass"},
    )

    assert resp.status_code == 409
    assert resp.json()["detail"] == "Email already registered"
    assert len(calls) == 2
