from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from classroom_chat.domain.entities.message import Message
from classroom_chat.infrastructure.db.mappers import message as mapper


class MessageWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, message: Message) -> Message:
        model = mapper.entity_to_model(message)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)
