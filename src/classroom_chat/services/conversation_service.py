from __future__ import annotations

from classroom_chat.application.dto.conversation import ConversationView
from classroom_chat.application.uow import UnitOfWork


async def list_user_conversations(
    user_id: int,
    limit: int,
    uow: UnitOfWork,
) -> list[ConversationView]:
    """Conversations of a user with their participants, newest first.

    Groups keep their stored name; single conversations are labelled by the
    client from the other participant.
    """
    conversations = await uow.conversations.list_for_user(user_id, limit=limit)
    views: list[ConversationView] = []
    for conv in conversations:
        participant_ids = await uow.participants.list_user_ids(conv.id)
        views.append(ConversationView(conv, tuple(participant_ids), conv.name))
    return views
