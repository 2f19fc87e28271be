"""WebSocket endpoint for project-scoped realtime fan-out."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any
from uuid import uuid4

from fastapi import APIRouter, WebSocket

from collabflow.core.logging import get_logger
from collabflow.services.realtime.protocol import handle_client_frame

if TYPE_CHECKING:
    from collabflow.services.realtime.hub import TopicHub

router = APIRouter(tags=["realtime"])
logger = get_logger(__name__)


class WebSocketSubscriber:
    """Adapts an accepted WebSocket to the hub's subscriber interface."""

    def __init__(self, websocket: WebSocket) -> None:
        self.id = uuid4().hex
        self.websocket = websocket

    async def send_json(self, payload: dict[str, Any]) -> None:
        await self.websocket.send_json(payload)


def _frame_text(message: dict[str, Any]) -> str:
    text = message.get("text")
    if text is not None:
        return str(text)
    data = message.get("bytes") or b""
    return bytes(data).decode("utf-8", errors="replace")


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket) -> None:
    """Relay `task-updated`/`comment-added` frames to the other project subscribers."""
    hub: TopicHub = websocket.app.state.topic_hub
    await websocket.accept()
    subscriber = WebSocketSubscriber(websocket)
    logger.info("realtime.connect", extra={"subscriber_id": subscriber.id})
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            await handle_client_frame(hub, subscriber, _frame_text(message))
    finally:
        topics = hub.topics_for(subscriber)
        hub.leave_all(subscriber)
        logger.info(
            "realtime.disconnect",
            extra={"subscriber_id": subscriber.id, "topic_count": len(topics)},
        )
