from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_chat.domain.entities.conversation import Conversation
from classroom_chat.domain.value_objects.enums import ConversationType
from classroom_chat.infrastructure.db.mappers import conversation as mapper
from classroom_chat.infrastructure.db.models.conversation import ConversationModel
from classroom_chat.infrastructure.db.models.participant import ParticipantModel


class ConversationReaderRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get_by_id(self, conversation_id: int) -> Conversation | None:
        result = await self._session.get(ConversationModel, conversation_id)
        return mapper.model_to_entity(result) if result else None

    async def get_single_by_pair_key(self, pair_key: str) -> Conversation | None:
        stmt = select(ConversationModel).where(
            ConversationModel.type == ConversationType.SINGLE,
            ConversationModel.pair_key == pair_key,
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        return mapper.model_to_entity(model) if model else None

    async def list_ids_for_user(self, user_id: int) -> list[int]:
        stmt = select(ParticipantModel.conversation_id).where(
            ParticipantModel.user_id == user_id
        )
        result = await self._session.execute(stmt)
        return list(result.scalars().all())

    async def list_for_user(self, user_id: int, *, limit: int = 50) -> list[Conversation]:
        stmt = (
            select(ConversationModel)
            .join(
                ParticipantModel,
                ParticipantModel.conversation_id == ConversationModel.id,
            )
            .where(ParticipantModel.user_id == user_id)
            .order_by(ConversationModel.created_at.desc(), ConversationModel.id.desc())
            .limit(limit)
        )
        result = await self._session.execute(stmt)
        return [mapper.model_to_entity(m) for m in result.scalars().all()]


class ConversationWriterRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def create(self, conversation: Conversation) -> Conversation:
        model = mapper.entity_to_model(conversation)
        self._session.add(model)
        await self._session.flush()
        return mapper.model_to_entity(model)

    async def create_single_if_not_exists(
        self, conversation: Conversation,
    ) -> tuple[Conversation, bool]:
        """Insert-or-fetch on the pair_key unique constraint. Returns (conversation, created_flag)."""
        stmt = (
            pg_insert(ConversationModel)
            .values(**mapper.entity_to_values(conversation))
            .on_conflict_do_nothing(constraint="uq_conversation_single_pair")
            .returning(ConversationModel)
        )
        result = await self._session.execute(stmt)
        row = result.scalar_one_or_none()

        if row is not None:
            return mapper.model_to_entity(row), True

        # Lost the race: another request created the pair first
        assert conversation.pair_key is not None
        existing = await ConversationReaderRepo(self._session).get_single_by_pair_key(
            conversation.pair_key,
        )
        assert existing is not None
        return existing, False
