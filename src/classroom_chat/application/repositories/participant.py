from __future__ import annotations

from typing import Protocol

from classroom_chat.domain.entities.participant import Participant


class ParticipantReader(Protocol):
    async def is_participant(self, conversation_id: int, user_id: int) -> bool: ...

    async def list_user_ids(self, conversation_id: int) -> list[int]: ...


class ParticipantWriter(Protocol):
    async def add(self, participant: Participant) -> None: ...
