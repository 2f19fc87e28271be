"""In-process topic registry with optional cross-process relay."""

from __future__ import annotations

from dataclasses import replace
from typing import TYPE_CHECKING
from uuid import uuid4

from collabflow.core.logging import get_logger

if TYPE_CHECKING:
    from collabflow.services.realtime.backplane import RedisBackplane
    from collabflow.services.realtime.protocol import Subscriber, TopicEvent

logger = get_logger(__name__)


class TopicHub:
    """Tracks topic subscriptions and fans events out to local subscribers.

    When a backplane is attached, published events are also relayed to other
    processes; events coming back from the backplane with this hub's own origin
    are dropped because they were already delivered locally.
    """

    def __init__(self, backplane: RedisBackplane | None = None) -> None:
        self.instance_id = uuid4().hex
        self.backplane = backplane
        self._topics: dict[str, dict[str, Subscriber]] = {}

    def join(self, topic: str, subscriber: Subscriber) -> None:
        self._topics.setdefault(topic, {})[subscriber.id] = subscriber
        logger.debug(
            "realtime.topic.join",
            extra={"topic": topic, "subscriber_id": subscriber.id},
        )

    def leave(self, topic: str, subscriber: Subscriber) -> None:
        members = self._topics.get(topic)
        if not members:
            return
        members.pop(subscriber.id, None)
        if not members:
            del self._topics[topic]

    def leave_all(self, subscriber: Subscriber) -> None:
        for topic in list(self._topics):
            self.leave(topic, subscriber)

    def subscribers(self, topic: str) -> list[Subscriber]:
        return list(self._topics.get(topic, {}).values())

    def topics_for(self, subscriber: Subscriber) -> set[str]:
        return {topic for topic, members in self._topics.items() if subscriber.id in members}

    async def publish(self, event: TopicEvent) -> int:
        """Deliver locally and relay through the backplane when one is attached."""
        stamped = replace(event, origin=self.instance_id)
        delivered = await self.deliver(stamped)
        if self.backplane is not None:
            try:
                await self.backplane.publish(stamped)
            except Exception as exc:
                logger.warning(
                    "realtime.backplane.publish_failed",
                    extra={"topic": event.topic, "event": event.event, "error": str(exc)},
                )
        return delivered

    async def deliver(self, event: TopicEvent) -> int:
        """Send an event to every local subscriber of its topic except the sender."""
        delivered = 0
        for subscriber in self.subscribers(event.topic):
            if event.sender_id is not None and subscriber.id == event.sender_id:
                continue
            try:
                await subscriber.send_json(event.frame())
            except Exception as exc:
                logger.info(
                    "realtime.deliver_failed",
                    extra={
                        "topic": event.topic,
                        "subscriber_id": subscriber.id,
                        "error": str(exc),
                    },
                )
                continue
            delivered += 1
        logger.debug(
            "realtime.delivered",
            extra={"topic": event.topic, "event": event.event, "count": delivered},
        )
        return delivered

    async def receive_remote(self, event: TopicEvent) -> None:
        if event.origin == self.instance_id:
            return
        await self.deliver(event)

    async def start(self) -> None:
        if self.backplane is not None:
            await self.backplane.start(self.receive_remote)

    async def stop(self) -> None:
        if self.backplane is not None:
            await self.backplane.stop()
        self._topics.clear()
