# ruff: noqa: INP001
"""Request-id middleware and JSON error handler tests."""

from __future__ import annotations

import pytest
from fastapi import FastAPI, HTTPException
from fastapi.testclient import TestClient
from httpx import Response
from pydantic import BaseModel, Field
from starlette.requests import Request

from collabflow.core import error_handling
from collabflow.core.error_handling import (
    REQUEST_ID_HEADER,
    _error_payload,
    _get_request_id,
    _http_exception_exception_handler,
    _request_validation_exception_handler,
    install_error_handling,
)


def _app() -> FastAPI:
    app = FastAPI()
    install_error_handling(app)
    return app


def _assert_request_id(resp: Response) -> str:
    body = resp.json()
    request_id = body.get("request_id")
    assert isinstance(request_id, str) and request_id
    assert resp.headers.get(REQUEST_ID_HEADER) == request_id
    return request_id


def test_not_found_detail_is_passed_through_with_request_id() -> None:
    app = _app()

    @app.get("/tasks/{task_id}")
    def get_task(task_id: str) -> None:
        raise HTTPException(status_code=404, detail="Task not found")

    resp = TestClient(app).get("/tasks/abc")

    assert resp.status_code == 404
    assert resp.json()["detail"] == "Task not found"
    _assert_request_id(resp)


def test_forbidden_detail_is_passed_through() -> None:
    app = _app()

    @app.delete("/tasks/{task_id}")
    def delete_task(task_id: str) -> None:
        raise HTTPException(status_code=403, detail="Only project owner can delete tasks")

    resp = TestClient(app).delete("/tasks/abc")

    assert resp.status_code == 403
    assert resp.json()["detail"] == "Only project owner can delete tasks"


def test_validation_error_returns_422_list() -> None:
    class Payload(BaseModel):
        title: str

    app = _app()

    @app.post("/tasks")
    def create_task(payload: Payload) -> dict[str, str]:
        return {"title": payload.title}

    resp = TestClient(app).post(
        "/tasks",
        content=b"\xffnot-json",
        headers={"content-type": "text/plain"},
    )

    assert resp.status_code == 422
    assert isinstance(resp.json()["detail"], list)
    _assert_request_id(resp)


def test_unhandled_exception_hides_internals() -> None:
    app = _app()

    @app.get("/boom")
    def boom() -> None:
        raise RuntimeError("database password is hunter2")

    resp = TestClient(app, raise_server_exceptions=False).get("/boom")

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal Server Error"
    assert "hunter2" not in resp.text
    _assert_request_id(resp)


def test_response_validation_failure_is_generic_500() -> None:
    class Out(BaseModel):
        name: str = Field(min_length=1)

    app = _app()

    @app.get("/bad", response_model=Out)
    def bad() -> dict[str, str]:
        return {"name": ""}

    resp = TestClient(app, raise_server_exceptions=False).get("/bad")

    assert resp.status_code == 500
    assert resp.json()["detail"] == "Internal Server Error"


def test_client_request_id_is_kept() -> None:
    app = _app()

    @app.get("/missing")
    def missing() -> None:
        raise HTTPException(status_code=404, detail="Project not found")

    resp = TestClient(app).get("/missing", headers={REQUEST_ID_HEADER: "  trace-42 "})

    assert resp.json()["request_id"] == "trace-42"
    assert resp.headers.get(REQUEST_ID_HEADER) == "trace-42"


def test_slow_request_logs_warning(monkeypatch: pytest.MonkeyPatch) -> None:
    warnings: list[tuple[str, dict[str, object]]] = []

    def _fake_warning(message: str, *args: object, **kwargs: object) -> None:
        del args
        extra = kwargs.get("extra")
        warnings.append((message, extra if isinstance(extra, dict) else {}))

    ticks = iter((10.0, 10.5))
    monkeypatch.setattr(error_handling.settings, "request_log_slow_ms", 100)
    monkeypatch.setattr(error_handling, "perf_counter", lambda: next(ticks))
    monkeypatch.setattr(error_handling.logger, "warning", _fake_warning)

    app = _app()

    @app.get("/slow")
    def slow() -> dict[str, bool]:
        return {"ok": True}

    resp = TestClient(app).get("/slow")

    assert resp.status_code == 200
    assert [message for message, _ in warnings] == ["http.request.slow"]
    assert warnings[0][1]["slow_threshold_ms"] == 100
    assert warnings[0][1]["path"] == "/slow"


def test_health_probe_is_not_logged_by_default(monkeypatch: pytest.MonkeyPatch) -> None:
    calls: list[str] = []
    monkeypatch.setattr(error_handling.settings, "request_log_include_health", False)
    monkeypatch.setattr(error_handling.logger, "info", lambda message, *a, **k: calls.append(message))

    app = _app()

    @app.get("/healthz")
    def healthz() -> dict[str, bool]:
        return {"ok": True}

    resp = TestClient(app).get("/healthz")

    assert resp.status_code == 200
    assert "http.request" not in calls
    assert resp.headers.get(REQUEST_ID_HEADER)


def test_request_id_state_helpers() -> None:
    assert _get_request_id(Request({"type": "http", "headers": [], "state": {}})) is None
    assert (
        _get_request_id(Request({"type": "http", "headers": [], "state": {"request_id": 7}}))
        is None
    )
    assert _error_payload(detail="x", request_id=None) == {"detail": "x"}
    assert _error_payload(detail="x", request_id="r") == {"detail": "x", "request_id": "r"}


@pytest.mark.asyncio
async def test_handlers_reject_unexpected_exception_types() -> None:
    req = Request({"type": "http", "headers": [], "state": {}})

    with pytest.raises(TypeError, match="Expected RequestValidationError"):
        await _request_validation_exception_handler(req, Exception("x"))
    with pytest.raises(TypeError, match="Expected StarletteHTTPException"):
        await _http_exception_exception_handler(req, ValueError("x"))


def test_json_safe_decodes_binary_values() -> None:
    assert error_handling._json_safe(b"\xff") == "\ufffd"
    assert error_handling._json_safe({"raw": bytearray(b"ok")}) == {"raw": "ok"}
    assert error_handling._json_safe((1, memoryview(b"a"))) == [1, "a"]
