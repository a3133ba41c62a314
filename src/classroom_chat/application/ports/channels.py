from __future__ import annotations

from typing import Any, Protocol


class ChannelDirectory(Protocol):
    """Named broadcast groups of live connections.

    ``connection`` is opaque to the application layer; the transport decides
    what it is.
    """

    async def subscribe(self, connection: Any, channel: str) -> None:
        """Add ``connection`` to ``channel``. Subscribing twice is a no-op."""
        ...

    async def subscribe_all_connections_of(
        self, identity_channel: str, target_channel: str,
    ) -> None:
        """Subscribe every connection currently in ``identity_channel`` to ``target_channel``.

        Point in time only: connections that join ``identity_channel`` later
        are not subscribed.
        """
        ...

    async def broadcast(
        self, channel: str, event: str, payload: dict[str, Any],
    ) -> None:
        """Fire-and-forget delivery to connections subscribed right now."""
        ...
