from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any

from classroom_chat.domain.entities.conversation import Conversation


@dataclass(frozen=True, slots=True)
class ConversationView:
    """A conversation together with the label one audience sees it under."""

    conversation: Conversation
    participant_ids: tuple[int, ...]
    conversation_name: str | None = None

    def named(self, name: str | None) -> ConversationView:
        return replace(self, conversation_name=name)

    def to_payload(self) -> dict[str, Any]:
        conv = self.conversation
        return {
            "id": conv.id,
            "type": conv.type,
            "creator_id": conv.creator_id,
            "classroom_id": conv.classroom_id,
            "created_at": conv.created_at.isoformat(),
            "conversation_name": self.conversation_name,
            "participants": list(self.participant_ids),
        }
