from __future__ import annotations

from typing import Any

from classroom_chat.domain.entities.conversation import Conversation
from classroom_chat.infrastructure.db.models.conversation import ConversationModel


def model_to_entity(model: ConversationModel) -> Conversation:
    return Conversation(
        id=model.id,
        type=model.type,
        creator_id=model.creator_id,
        classroom_id=model.classroom_id,
        name=model.name,
        pair_key=model.pair_key,
        created_at=model.created_at,
    )


def entity_to_values(entity: Conversation) -> dict[str, Any]:
    """Column values for an insert; an unsaved entity leaves the id to the database."""
    values: dict[str, Any] = {
        "type": entity.type,
        "creator_id": entity.creator_id,
        "classroom_id": entity.classroom_id,
        "name": entity.name,
        "pair_key": entity.pair_key,
        "created_at": entity.created_at,
    }
    if entity.id is not None:
        values["id"] = entity.id
    return values


def entity_to_model(entity: Conversation) -> ConversationModel:
    return ConversationModel(**entity_to_values(entity))
