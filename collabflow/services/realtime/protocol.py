"""Realtime event envelope and client frame handling."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Protocol

from collabflow.core.logging import get_logger

if TYPE_CHECKING:
    from collabflow.services.realtime.hub import TopicHub

logger = get_logger(__name__)

JOIN_PROJECT = "join-project"
LEAVE_PROJECT = "leave-project"
JOINED = "joined"
LEFT = "left"
ERROR = "error"

# Client event -> event name rebroadcast to the rest of the project topic.
REBROADCAST_EVENTS = {
    "task-updated": "task-update",
    "comment-added": "new-comment",
}


class Subscriber(Protocol):
    """Connection that can receive JSON frames from the hub."""

    id: str

    async def send_json(self, payload: dict[str, Any]) -> None: ...


@dataclass(frozen=True)
class TopicEvent:
    """One event published to a topic."""

    topic: str
    event: str
    data: Any
    sender_id: str | None = None
    origin: str | None = None

    def frame(self) -> dict[str, Any]:
        return {"event": self.event, "data": self.data}

    def to_json(self) -> str:
        return json.dumps(
            {
                "topic": self.topic,
                "event": self.event,
                "data": self.data,
                "sender_id": self.sender_id,
                "origin": self.origin,
            },
            sort_keys=True,
        )

    @classmethod
    def from_json(cls, raw: str | bytes) -> TopicEvent:
        decoded = json.loads(raw)
        if not isinstance(decoded, dict):
            raise ValueError("topic event must be a JSON object")
        topic = decoded.get("topic")
        event = decoded.get("event")
        if not isinstance(topic, str) or not isinstance(event, str):
            raise ValueError("topic event requires string topic and event")
        return cls(
            topic=topic,
            event=event,
            data=decoded.get("data"),
            sender_id=decoded.get("sender_id"),
            origin=decoded.get("origin"),
        )


@dataclass
class ClientFrame:
    event: str
    data: Any = field(default=None)


def project_topic(project_id: object) -> str:
    return f"project-{project_id}"


def parse_client_frame(raw: str) -> ClientFrame:
    """Decode a client frame, raising `ValueError` when it is malformed."""
    decoded = json.loads(raw)
    if not isinstance(decoded, dict):
        raise ValueError("frame must be a JSON object")
    event = decoded.get("event")
    if not isinstance(event, str) or not event:
        raise ValueError("frame requires an event name")
    return ClientFrame(event=event, data=decoded.get("data"))


def _project_id_from_payload(data: Any) -> str | None:
    if isinstance(data, dict):
        value = data.get("projectId", data.get("project_id"))
    else:
        value = data
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    return text or None


def error_frame(message: str) -> dict[str, Any]:
    return {"event": ERROR, "data": {"message": message}}


async def handle_client_frame(hub: TopicHub, subscriber: Subscriber, raw: str) -> None:
    """Apply one inbound frame from a subscriber to the hub."""
    try:
        frame = parse_client_frame(raw)
    except ValueError as exc:
        # json.JSONDecodeError is a ValueError subclass.
        logger.info(
            "realtime.frame.invalid",
            extra={"subscriber_id": subscriber.id, "error": str(exc)},
        )
        await subscriber.send_json(error_frame("Invalid frame"))
        return

    if frame.event in (JOIN_PROJECT, LEAVE_PROJECT):
        project_id = _project_id_from_payload(frame.data)
        if project_id is None:
            await subscriber.send_json(error_frame("Project id is required"))
            return
        topic = project_topic(project_id)
        if frame.event == JOIN_PROJECT:
            hub.join(topic, subscriber)
            await subscriber.send_json({"event": JOINED, "data": {"projectId": project_id}})
        else:
            hub.leave(topic, subscriber)
            await subscriber.send_json({"event": LEFT, "data": {"projectId": project_id}})
        return

    outbound = REBROADCAST_EVENTS.get(frame.event)
    if outbound is None:
        logger.debug(
            "realtime.frame.ignored",
            extra={"subscriber_id": subscriber.id, "event": frame.event},
        )
        return
    project_id = _project_id_from_payload(frame.data)
    if project_id is None or not isinstance(frame.data, dict):
        await subscriber.send_json(error_frame("Project id is required"))
        return
    await hub.publish(
        TopicEvent(
            topic=project_topic(project_id),
            event=outbound,
            data=frame.data,
            sender_id=subscriber.id,
        ),
    )
