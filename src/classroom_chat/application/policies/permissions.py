from __future__ import annotations

from classroom_chat.application.exceptions import ForbiddenError, NotFoundError
from classroom_chat.application.repositories.participant import ParticipantReader
from classroom_chat.domain.entities.conversation import Conversation


async def assert_conversation_access(
    user_id: int,
    conversation: Conversation | None,
    participants: ParticipantReader,
) -> Conversation:
    """Raise if conversation doesn't exist or the user is not one of its participants."""
    if conversation is None or conversation.id is None:
        raise NotFoundError("Conversation not found")

    is_member = await participants.is_participant(conversation.id, user_id)
    if not is_member:
        raise ForbiddenError("Not a participant of this conversation")

    return conversation
