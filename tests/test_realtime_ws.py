# ruff: noqa: INP001
"""WebSocket endpoint tests for project fan-out."""

from __future__ import annotations

import logging

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from collabflow.api import realtime as realtime_api
from collabflow.api.realtime import router as realtime_router
from collabflow.services.realtime import TopicHub


def _build_test_app() -> FastAPI:
    app = FastAPI()
    app.include_router(realtime_router)
    app.state.topic_hub = TopicHub()
    return app


def test_task_update_fans_out_between_sockets() -> None:
    # Both sockets must share one event loop.
    with (
        TestClient(_build_test_app()) as client,
        client.websocket_connect("/ws") as alice,
        client.websocket_connect("/ws") as bob,
    ):
        for socket in (alice, bob):
            socket.send_json({"event": "join-project", "data": "p1"})
            assert socket.receive_json() == {"event": "joined", "data": {"projectId": "p1"}}

        alice.send_json({"event": "task-updated", "data": {"projectId": "p1", "taskId": "t1"}})
        assert bob.receive_json() == {
            "event": "task-update",
            "data": {"projectId": "p1", "taskId": "t1"},
        }

        bob.send_json({"event": "comment-added", "data": {"projectId": "p1", "text": "hi"}})
        assert alice.receive_json() == {
            "event": "new-comment",
            "data": {"projectId": "p1", "text": "hi"},
        }


def test_malformed_frame_returns_error_event() -> None:
    client = TestClient(_build_test_app())

    with client.websocket_connect("/ws") as socket:
        socket.send_text("not json")
        assert socket.receive_json() == {"event": "error", "data": {"message": "Invalid frame"}}


def test_disconnect_removes_subscriptions(caplog: pytest.LogCaptureFixture) -> None:
    app = _build_test_app()
    client = TestClient(app)

    with (
        caplog.at_level(logging.INFO, logger=realtime_api.logger.name),
        client.websocket_connect("/ws") as socket,
    ):
        socket.send_json({"event": "join-project", "data": "p9"})
        socket.receive_json()
        assert app.state.topic_hub.subscribers("project-p9")

    assert app.state.topic_hub.subscribers("project-p9") == []
    disconnects = [r for r in caplog.records if r.getMessage() == "realtime.disconnect"]
    assert [record.topic_count for record in disconnects] == [1]
