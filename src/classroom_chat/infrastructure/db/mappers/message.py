from __future__ import annotations

from classroom_chat.domain.entities.message import Message
from classroom_chat.infrastructure.db.models.message import MessageModel


def model_to_entity(model: MessageModel) -> Message:
    return Message(
        id=model.id,
        conversation_id=model.conversation_id,
        sender_id=model.sender_id,
        body=model.body,
        attachment_id=model.attachment_id,
        can_reply=model.can_reply,
        created_at=model.created_at,
    )


def entity_to_model(entity: Message) -> MessageModel:
    model = MessageModel(
        conversation_id=entity.conversation_id,
        sender_id=entity.sender_id,
        body=entity.body,
        attachment_id=entity.attachment_id,
        can_reply=entity.can_reply,
        created_at=entity.created_at,
    )
    if entity.id is not None:
        model.id = entity.id
    return model
