"""Redis Pub/Sub channel directory shared by every worker process."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Coroutine

import redis.asyncio as aioredis

from classroom_chat.infrastructure.bus.serializer import deserialize_op, serialize_op
from classroom_chat.infrastructure.ws.manager import ConnectionManager

logger = logging.getLogger(__name__)

OP_BROADCAST = "broadcast"
OP_FANOUT_SUBSCRIBE = "fanout_subscribe"


class RedisChannelDirectory:
    """Implements application.ports.channels.ChannelDirectory across processes.

    Subscribing a connection stays local (the socket lives here). Fan-out
    subscriptions and broadcasts go through one Redis channel so every process
    applies them to its own connections, in publish order.
    """

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        local: ConnectionManager,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._local = local

    async def subscribe(self, connection: Any, channel: str) -> None:
        await self._local.subscribe(connection, channel)

    async def subscribe_all_connections_of(
        self, identity_channel: str, target_channel: str,
    ) -> None:
        await self._publish(
            OP_FANOUT_SUBSCRIBE,
            {"identity_channel": identity_channel, "target_channel": target_channel},
        )

    async def broadcast(self, channel: str, event: str, payload: dict[str, Any]) -> None:
        await self._publish(
            OP_BROADCAST,
            {"channel": channel, "event": event, "payload": payload},
        )

    async def _publish(self, op: str, data: dict[str, Any]) -> None:
        await self._redis.publish(self._channel, serialize_op(op, data))


async def apply_op(local: ConnectionManager, op: str, data: dict[str, Any]) -> None:
    """Replay a directory operation received from Redis on local connections."""
    if op == OP_FANOUT_SUBSCRIBE:
        await local.subscribe_all_connections_of(
            data["identity_channel"], data["target_channel"],
        )
    elif op == OP_BROADCAST:
        await local.broadcast(data["channel"], data["event"], data["payload"])
    else:
        logger.warning("Ignoring unknown channel op %r", op)


OnOpCallback = Callable[[str, dict[str, Any]], Coroutine[Any, Any, None]]


class RedisPubSubSubscriber:
    """Background task that listens to a Redis channel and dispatches ops."""

    def __init__(
        self,
        redis: aioredis.Redis,
        channel: str,
        callback: OnOpCallback,
    ) -> None:
        self._redis = redis
        self._channel = channel
        self._callback = callback
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        self._task = asyncio.create_task(self._listen(), name="redis-pubsub-subscriber")
        logger.info("Redis Pub/Sub subscriber started on channel=%s", self._channel)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            logger.info("Redis Pub/Sub subscriber stopped")

    async def _listen(self) -> None:
        pubsub = self._redis.pubsub()
        await pubsub.subscribe(self._channel)
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue
                try:
                    op, data = deserialize_op(message["data"])
                    await self._callback(op, data)
                except Exception:
                    logger.exception("Error processing pubsub message")
        finally:
            await pubsub.unsubscribe(self._channel)
            await pubsub.aclose()
