"""Redis pub/sub relay so realtime events reach subscribers on every worker."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from collabflow.core.logging import get_logger
from collabflow.services.realtime.protocol import TopicEvent

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = get_logger(__name__)


def _redis_client(redis_url: str) -> Any:
    return aioredis.Redis.from_url(redis_url)


class RedisBackplane:
    """Publishes topic events to Redis channels and relays them back to a hub."""

    def __init__(self, redis_url: str, *, channel_prefix: str) -> None:
        self.redis_url = redis_url
        self.channel_prefix = channel_prefix
        self._client: Any = None
        self._pubsub: Any = None
        self._listener: asyncio.Task[None] | None = None

    def channel_for(self, topic: str) -> str:
        return f"{self.channel_prefix}{topic}"

    async def start(self, on_event: Callable[[TopicEvent], Awaitable[None]]) -> None:
        self._client = _redis_client(self.redis_url)
        self._pubsub = self._client.pubsub()
        await self._pubsub.psubscribe(f"{self.channel_prefix}*")
        self._listener = asyncio.create_task(self._listen(on_event))
        logger.info(
            "realtime.backplane.started",
            extra={"channel_prefix": self.channel_prefix},
        )

    async def publish(self, event: TopicEvent) -> None:
        if self._client is None:
            raise RuntimeError("Backplane is not started")
        await self._client.publish(self.channel_for(event.topic), event.to_json())

    async def _listen(self, on_event: Callable[[TopicEvent], Awaitable[None]]) -> None:
        try:
            await self._relay(on_event)
        except Exception:
            logger.exception("realtime.backplane.listener_failed")

    async def _relay(self, on_event: Callable[[TopicEvent], Awaitable[None]]) -> None:
        async for message in self._pubsub.listen():
            if message.get("type") != "pmessage":
                continue
            try:
                event = TopicEvent.from_json(message["data"])
            except (ValueError, KeyError) as exc:
                logger.warning(
                    "realtime.backplane.invalid_message",
                    extra={"channel": str(message.get("channel")), "error": str(exc)},
                )
                continue
            try:
                await on_event(event)
            except Exception:
                logger.exception(
                    "realtime.backplane.dispatch_failed",
                    extra={"topic": event.topic, "event": event.event},
                )

    async def stop(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            except Exception:
                logger.exception("realtime.backplane.listener_failed")
            self._listener = None
        if self._pubsub is not None:
            try:
                await self._pubsub.punsubscribe()
            except (RedisError, OSError) as exc:
                logger.warning(
                    "realtime.backplane.unsubscribe_failed",
                    extra={"error": str(exc)},
                )
            await self._pubsub.aclose()
            self._pubsub = None
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        logger.info("realtime.backplane.stopped")
