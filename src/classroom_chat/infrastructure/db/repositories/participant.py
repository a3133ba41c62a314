from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_chat.domain.entities.participant import Participant
from classroom_chat.infrastructure.db.models.participant import ParticipantModel


class ParticipantReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def is_participant(self, conversation_id: int, user_id: int) -> bool:
        stmt = (
            select(ParticipantModel.id)
            .where(
                ParticipantModel.conversation_id == conversation_id,
                ParticipantModel.user_id == user_id,
            )
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none() is not None

    async def list_user_ids(self, conversation_id: int) -> list[int]:
        stmt = (
            select(ParticipantModel.user_id)
            .where(ParticipantModel.conversation_id == conversation_id)
            .order_by(ParticipantModel.id)
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())


class ParticipantWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def add(self, participant: Participant) -> None:
        self._session.add(
            ParticipantModel(
                conversation_id=participant.conversation_id,
                user_id=participant.user_id,
                joined_at=participant.joined_at,
            )
        )
        await self._session.flush()
