from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from classroom_chat.domain.entities.attachment import Attachment
from classroom_chat.infrastructure.db.mappers import attachment as mapper


class AttachmentWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, attachment: Attachment) -> Attachment:
        model = mapper.entity_to_model(attachment)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)
