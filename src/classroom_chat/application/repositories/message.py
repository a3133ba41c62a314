from __future__ import annotations

from typing import Protocol

from classroom_chat.domain.entities.message import Message


class MessageWriter(Protocol):
    async def create(self, message: Message) -> Message:
        """Insert message and return it with its generated id."""
        ...
