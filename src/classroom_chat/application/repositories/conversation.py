from __future__ import annotations

from typing import Protocol

from classroom_chat.domain.entities.conversation import Conversation


class ConversationReader(Protocol):
    async def get_by_id(self, conversation_id: int) -> Conversation | None: ...

    async def get_single_by_pair_key(self, pair_key: str) -> Conversation | None:
        """Find the one-to-one conversation for a classroom-scoped user pair."""
        ...

    async def list_ids_for_user(self, user_id: int) -> list[int]: ...

    async def list_for_user(self, user_id: int, *, limit: int = 50) -> list[Conversation]: ...


class ConversationWriter(Protocol):
    async def create(self, conversation: Conversation) -> Conversation: ...

    async def create_single_if_not_exists(
        self, conversation: Conversation,
    ) -> tuple[Conversation, bool]:
        """Insert a single conversation. Return (conversation, created).

        If another conversation already holds the same pair_key, that one is
        returned with created=False.
        """
        ...
