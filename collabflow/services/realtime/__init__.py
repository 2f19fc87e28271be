"""Project-scoped realtime fan-out over WebSockets."""

from collabflow.services.realtime.backplane import RedisBackplane
from collabflow.services.realtime.hub import TopicHub
from collabflow.services.realtime.protocol import (
    TopicEvent,
    handle_client_frame,
    project_topic,
)

__all__ = [
    "RedisBackplane",
    "TopicEvent",
    "TopicHub",
    "handle_client_frame",
    "project_topic",
]
