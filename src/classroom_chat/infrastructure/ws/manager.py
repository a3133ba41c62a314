"""In-process WebSocket channel directory."""
from __future__ import annotations

import logging
from typing import Any

from fastapi import WebSocket

from classroom_chat.infrastructure.ws.protocol import WsOutbound

logger = logging.getLogger(__name__)


class ConnectionManager:
    """Tracks live WebSocket connections and the named channels they joined.

    Implements application.ports.channels.ChannelDirectory for a single process.
    """

    def __init__(self) -> None:
        self._channels: dict[str, set[WebSocket]] = {}
        self._memberships: dict[WebSocket, set[str]] = {}

    @property
    def connection_count(self) -> int:
        return len(self._memberships)

    def members(self, channel: str) -> set[WebSocket]:
        return set(self._channels.get(channel, ()))

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        self._memberships.setdefault(ws, set())
        logger.debug("WS connected (total=%d)", len(self._memberships))

    def disconnect(self, ws: WebSocket) -> None:
        for channel in self._memberships.pop(ws, set()):
            conns = self._channels.get(channel)
            if conns is None:
                continue
            conns.discard(ws)
            if not conns:
                del self._channels[channel]
        logger.debug("WS disconnected (total=%d)", len(self._memberships))

    async def subscribe(self, ws: WebSocket, channel: str) -> None:
        # Only connect() registers a socket; late joins after disconnect are dropped.
        memberships = self._memberships.get(ws)
        if memberships is None:
            logger.debug("Ignoring subscribe to %s for a closed connection", channel)
            return
        self._channels.setdefault(channel, set()).add(ws)
        memberships.add(channel)

    async def unsubscribe(self, ws: WebSocket, channel: str) -> None:
        conns = self._channels.get(channel)
        if conns:
            conns.discard(ws)
            if not conns:
                del self._channels[channel]
        self._memberships.get(ws, set()).discard(channel)

    async def subscribe_all_connections_of(
        self,
        identity_channel: str,
        target_channel: str,
    ) -> None:
        """Join every connection currently in identity_channel to target_channel."""
        conns = self.members(identity_channel)
        for ws in conns:
            await self.subscribe(ws, target_channel)
        logger.debug(
            "Subscribed %d connections of %s to %s",
            len(conns), identity_channel, target_channel,
        )

    async def broadcast(
        self,
        channel: str,
        event: str,
        payload: dict[str, Any],
    ) -> None:
        """Send a WS message to every connection subscribed to channel."""
        raw = WsOutbound(type=event, data=payload).model_dump_json()
        dead: list[WebSocket] = []
        for ws in self.members(channel):
            try:
                await ws.send_text(raw)
            except Exception:
                dead.append(ws)
        for ws in dead:
            self.disconnect(ws)

    async def send(
        self,
        ws: WebSocket,
        event: str,
        payload: dict[str, Any],
    ) -> None:
        """Send a WS message to one connection."""
        raw = WsOutbound(type=event, data=payload).model_dump_json()
        try:
            await ws.send_text(raw)
        except Exception:
            logger.debug("Dropping %s frame for closed connection", event)
            self.disconnect(ws)
