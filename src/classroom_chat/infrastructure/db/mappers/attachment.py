from __future__ import annotations

from classroom_chat.domain.entities.attachment import Attachment
from classroom_chat.infrastructure.db.models.attachment import AttachmentModel


def model_to_entity(model: AttachmentModel) -> Attachment:
    return Attachment(
        id=model.id,
        url=model.url,
        name=model.name,
        content_type=model.content_type,
        size=model.size,
    )


def entity_to_model(entity: Attachment) -> AttachmentModel:
    return AttachmentModel(
        url=entity.url,
        name=entity.name,
        content_type=entity.content_type,
        size=entity.size,
    )
