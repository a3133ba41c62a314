from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel

from classroom_chat.application.dto.conversation import ConversationView


class ConversationResponse(BaseModel):
    id: int
    type: str
    creator_id: int
    classroom_id: int | None
    name: str | None
    created_at: datetime
    participants: list[int]

    @classmethod
    def from_view(cls, view: ConversationView) -> ConversationResponse:
        conv = view.conversation
        return cls(
            id=conv.id,
            type=conv.type,
            creator_id=conv.creator_id,
            classroom_id=conv.classroom_id,
            name=view.conversation_name,
            created_at=conv.created_at,
            participants=list(view.participant_ids),
        )
